"""
Patient Schemas - Pydantic models for patient data validation and serialization.
"""
from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime

from ..core.pagination import PageMetadata

class PatientFields(BaseModel):
    """
    Patient Fields Schema - Every clinical field, all optional
    
    Missing values are reported by the domain validator, field by field.
    """
    name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[float] = None
    contact: Optional[int] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    insurance_info: Optional[str] = None
    last_visit: Optional[datetime] = None
    doctor_id: Optional[int] = None

class PatientCreate(PatientFields):
    """
    Patient Creation Schema - Used when a receptionist adds a patient
    """
    class Config:
        """Configuration for Pydantic model"""
        json_schema_extra = {
            "example": {
                "name": "Jane Roe",
                "gender": "female",
                "age": 34,
                "contact": 9876543210,
                "address": "12 Harbour Road",
                "medical_history": "Seasonal asthma",
                "insurance_info": "HealthFirst #4471",
                "last_visit": "2024-05-02T10:30:00Z",
                "doctor_id": 1
            }
        }

class PatientUpdate(PatientFields):
    """
    Patient Update Schema - Partial update
    
    Only fields present and non-null are applied.
    
    Fields:
    - version: Version the client last read (optional, stale values are rejected)
    """
    version: Optional[int] = None

class PatientResponse(BaseModel):
    """
    Patient Response Schema - Used when returning patient data
    """
    id: int
    created_at: datetime
    name: str
    gender: str
    age: float
    contact: int
    address: str
    medical_history: str
    insurance_info: str
    last_visit: datetime
    doctor_id: int
    version: int

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class PatientListResponse(BaseModel):
    """
    Patient List Response Schema - One page of patients
    """
    patients: List[PatientResponse]
    metadata: PageMetadata
