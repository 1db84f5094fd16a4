"""
Patient Registry - Validation and persistence of patient records.

Writes are guarded by the record version: an update only lands if the row
still holds the version that was read, and every successful update bumps it.
"""
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.pagination import PageMetadata, PageParams, paginate
from ..core.timeutils import as_utc, utc_now
from ..core.validator import MAX_INT32, Validator, validate_contact_number
from ..exceptions import EditConflictException, RecordNotFoundException
from .models import Gender, Patient
from .schemas import PatientCreate, PatientUpdate

# Set up logging
logger = logging.getLogger(__name__)

MIN_CONTACT_DIGITS = 10
GENDERS = frozenset(g.value for g in Gender)

def validate_patient(v: Validator, patient: Patient) -> None:
    """
    Check every field of a patient record.
    
    Args:
        v: Validator collecting errors
        patient: Patient to check (new or merged with an update)
    """
    v.check(bool(patient.name), "name", "must be provided")
    v.check(patient.gender in GENDERS, "gender", "must be one of male, female or other")
    
    v.check(patient.age is not None, "age", "must be provided")
    if patient.age is not None:
        v.check(patient.age >= 0, "age", "must not be negative")
    
    v.check(patient.contact is not None, "contact", "must be provided")
    if patient.contact is not None:
        validate_contact_number(v, patient.contact, MIN_CONTACT_DIGITS)
    
    v.check(bool(patient.medical_history), "medical_history", "must be provided")
    v.check(bool(patient.insurance_info), "insurance_info", "must be provided")
    
    v.check(patient.last_visit is not None, "last_visit", "must be provided")
    if patient.last_visit is not None:
        v.check(as_utc(patient.last_visit) < utc_now(), "last_visit", "must be in the past")
    
    v.check(patient.doctor_id is not None and patient.doctor_id >= 0, "doctor_id", "must be provided")
    if patient.doctor_id is not None:
        v.check(patient.doctor_id <= MAX_INT32, "doctor_id", f"must be at most {MAX_INT32}")

def _is_possible_id(patient_id: int) -> bool:
    return 1 <= patient_id <= MAX_INT32

def _apply(patient: Patient, changes: dict) -> None:
    for field, value in changes.items():
        if field == "last_visit" and value is not None:
            value = as_utc(value)
        setattr(patient, field, value)

def insert_patient(db: Session, data: PatientCreate) -> Patient:
    """
    Validate and store a new patient.
    
    Args:
        db: Database session
        data: Patient fields
        
    Returns:
        Patient: Stored patient with id, created_at and version 1
        
    Raises:
        FailedValidationException: If any field is invalid
    """
    fields = data.model_dump()
    if fields["address"] is None:
        fields["address"] = ""
    if fields["doctor_id"] is None:
        fields["doctor_id"] = 0
    
    patient = Patient()
    _apply(patient, fields)
    
    v = Validator()
    validate_patient(v, patient)
    v.raise_if_invalid()
    
    db.add(patient)
    db.commit()
    db.refresh(patient)
    
    logger.info(f"Patient created: {patient.id} (doctor {patient.doctor_id})")
    return patient

def get_patient(db: Session, patient_id: int) -> Patient:
    """
    Get a patient by ID.
    
    Args:
        db: Database session
        patient_id: Patient ID
        
    Returns:
        Patient: Patient record
        
    Raises:
        RecordNotFoundException: If the ID is out of range or unknown
    """
    if not _is_possible_id(patient_id):
        raise RecordNotFoundException()
    
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise RecordNotFoundException()
    return patient

def save_patient(db: Session, patient: Patient) -> Patient:
    """
    Write pending changes of a loaded patient.
    
    Args:
        db: Database session
        patient: Patient loaded in this session and modified in place
        
    Returns:
        Patient: Refreshed patient
        
    Raises:
        EditConflictException: If another write bumped the version first
        RecordNotFoundException: If the patient was deleted meanwhile
    """
    patient_id = patient.id
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if db.query(Patient.id).filter(Patient.id == patient_id).first() is None:
            raise RecordNotFoundException()
        logger.warning(f"Edit conflict on patient {patient_id}")
        raise EditConflictException()
    
    db.refresh(patient)
    return patient

def update_patient(db: Session, patient_id: int, data: PatientUpdate) -> Patient:
    """
    Apply a partial update to a patient.
    
    Only fields present and non-null in `data` are changed. The merged record
    is validated as a whole before it is written.
    
    Args:
        db: Database session
        patient_id: Patient ID
        data: Fields to change and optionally the version last read
        
    Returns:
        Patient: Updated patient
        
    Raises:
        RecordNotFoundException: If the patient does not exist
        EditConflictException: If `data.version` is stale or a concurrent write won
        FailedValidationException: If the merged record is invalid
    """
    patient = get_patient(db, patient_id)
    
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    expected_version = changes.pop("version", None)
    if expected_version is not None and expected_version != patient.version:
        db.rollback()
        logger.warning(
            f"Stale update on patient {patient_id}: "
            f"got version {expected_version}, stored {patient.version}"
        )
        raise EditConflictException()
    
    _apply(patient, changes)
    
    v = Validator()
    validate_patient(v, patient)
    if not v.valid:
        db.rollback()
        v.raise_if_invalid()
    
    patient = save_patient(db, patient)
    logger.info(f"Patient {patient_id} updated to version {patient.version}")
    return patient

def delete_patient(db: Session, patient_id: int) -> None:
    """
    Delete a patient.
    
    Args:
        db: Database session
        patient_id: Patient ID
        
    Raises:
        RecordNotFoundException: If the ID is out of range or no row was deleted
    """
    if not _is_possible_id(patient_id):
        raise RecordNotFoundException()
    
    deleted = db.query(Patient).filter(Patient.id == patient_id).delete(synchronize_session=False)
    db.commit()
    if deleted == 0:
        raise RecordNotFoundException()
    
    logger.info(f"Patient deleted: {patient_id}")

def list_patients(
    db: Session,
    page_params: PageParams,
    doctor_id: Optional[int] = None
) -> Tuple[List[Patient], PageMetadata]:
    """
    List patients ordered by ID, optionally only those of one doctor.
    """
    if doctor_id is not None and not 0 <= doctor_id <= MAX_INT32:
        return [], PageMetadata()
    
    query = db.query(Patient)
    if doctor_id is not None:
        query = query.filter(Patient.doctor_id == doctor_id)
    return paginate(query.order_by(Patient.id), page_params)
