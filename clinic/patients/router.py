"""
Patient Router - API endpoints for patient records.

Receptionists create and delete patients; receptionists and doctors read and
update them.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import Principal, require_receptionist, require_receptionist_or_doctor
from ..core.pagination import PageParams
from .schemas import PatientCreate, PatientListResponse, PatientResponse, PatientUpdate
from .service import delete_patient, get_patient, insert_patient, list_patients, update_patient

router = APIRouter(prefix="/v1/patients", tags=["Patients"])

@router.post("", status_code=status.HTTP_201_CREATED)
def create_patient(
    data: PatientCreate,
    response: Response,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_receptionist)
):
    """
    Create a patient record
    
    The `Location` header points at the new record.
    """
    patient = insert_patient(db, data)
    response.headers["Location"] = f"/v1/patients/{patient.id}"
    return {"patient": PatientResponse.model_validate(patient)}

@router.get("", response_model=PatientListResponse)
def get_patients(
    page_params: PageParams = Depends(),
    doctor_id: Optional[int] = Query(None, description="Only patients of this doctor"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_receptionist_or_doctor)
):
    """
    Get a paginated list of patients
    """
    patients, metadata = list_patients(db, page_params, doctor_id)
    return PatientListResponse(
        patients=[PatientResponse.model_validate(p) for p in patients],
        metadata=metadata
    )

@router.get("/{patient_id}")
def get_patient_by_id(
    patient_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_receptionist_or_doctor)
):
    """
    Get a patient record by ID
    """
    return {"patient": PatientResponse.model_validate(get_patient(db, patient_id))}

@router.put("/{patient_id}")
def update_patient_by_id(
    patient_id: int,
    data: PatientUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_receptionist_or_doctor)
):
    """
    Update a patient record
    
    Only the fields sent are changed. Include the `version` last read to have
    the update rejected with 409 when someone else changed the record first.
    """
    patient = update_patient(db, patient_id, data)
    return {"patient": PatientResponse.model_validate(patient)}

@router.delete("/{patient_id}")
def delete_patient_by_id(
    patient_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_receptionist)
):
    """
    Delete a patient record
    """
    delete_patient(db, patient_id)
    return {"message": "patient info deleted successfully"}
