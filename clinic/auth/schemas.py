"""
Account Schemas - Pydantic models for registration, login and account responses.

Inputs keep every field optional and loosely typed so that missing or
out-of-range values reach the domain validator and come back as one
field-by-field 422 response.
"""
from typing import Optional
from pydantic import BaseModel, validator
from datetime import datetime

from ..core.timeutils import format_shift_time

class AccountRegistration(BaseModel):
    """
    Registration Schema - Shared by doctors and receptionists
    
    Fields:
    - name: Account holder's name
    - email: Email address, unique across all accounts
    - password: Plain text password (hashed before storage)
    - specialization: Doctor's medical specialization (doctors only)
    - contact: Contact number
    - shift_start / shift_end: Shift timings such as "9:00 AM"
    """
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    specialization: Optional[str] = None
    contact: Optional[int] = None
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None

    class Config:
        """Configuration for Pydantic model"""
        json_schema_extra = {
            "example": {
                "name": "A",
                "email": "a@x.com",
                "password": "longenough1",
                "specialization": "Cardio",
                "contact": 9998887776,
                "shift_start": "9:00 AM",
                "shift_end": "5:00 PM"
            }
        }

class AccountUpdate(BaseModel):
    """
    Account Update Schema - Partial update of the current account
    
    Fields:
    - version: Version the client last read (optional, stale values are rejected)
    """
    name: Optional[str] = None
    password: Optional[str] = None
    specialization: Optional[str] = None
    contact: Optional[int] = None
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    version: Optional[int] = None

class UserLogin(BaseModel):
    """
    User Login Schema - Used to obtain a fresh authentication token
    
    Fields:
    - email: Account email address
    - password: Plain text password
    """
    email: Optional[str] = None
    password: Optional[str] = None

class AccountResponse(BaseModel):
    """
    Account Response Schema - Account data without the password hash
    
    Shift timings are rendered in the same "3:04 PM" form they were sent in.
    """
    id: int
    created_at: datetime
    name: str
    email: str
    role: str
    specialization: Optional[str] = None
    contact: Optional[int] = None
    shift_start: str
    shift_end: str
    version: int

    @validator("shift_start", "shift_end", pre=True)
    def render_shift_time(cls, v):
        """Render stored times as "9:00 AM" """
        if isinstance(v, str):
            return v
        return format_shift_time(v)

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class TokenResponse(BaseModel):
    """
    Token Response Schema - Plaintext token and its expiry
    """
    token: str
    expiry: datetime
