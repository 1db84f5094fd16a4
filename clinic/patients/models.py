"""
Patient Model - Stores patient records managed by receptionists.

Updates use optimistic concurrency: every UPDATE is conditioned on the version
that was read and increments it.
"""
from sqlalchemy import Column, Integer, BigInteger, Float, String, Text, DateTime, func
import enum

from ..database import Base

class Gender(str, enum.Enum):
    """Accepted values for a patient's gender"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

class Patient(Base):
    """
    Patient Model - Stores patient-specific information
    
    Fields:
    - id: Primary key, assigned on creation
    - created_at: When the record was created
    - name: Patient's name
    - gender: male, female or other
    - age: Patient's age
    - contact: Contact number
    - address: Patient's address
    - medical_history: Medical history notes
    - insurance_info: Insurance details
    - last_visit: When the patient was last seen
    - doctor_id: Assigned doctor (0 when unassigned, not a foreign key)
    - version: Incremented on every successful update
    """
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    name = Column(String, nullable=False)
    gender = Column(String(10), nullable=False)
    age = Column(Float, nullable=False)
    contact = Column(BigInteger, nullable=False)
    address = Column(String, nullable=False, default="")
    medical_history = Column(Text, nullable=False)
    insurance_info = Column(Text, nullable=False)
    last_visit = Column(DateTime(timezone=True), nullable=False)
    doctor_id = Column(Integer, nullable=False, default=0, index=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, name='{self.name}', version={self.version})>"
