"""
Account and Token Models - Doctors and receptionists share one identity space.

Both account kinds live in the `users` table (single-table inheritance keyed by
`role`), so email uniqueness holds across them through one constraint.
"""
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Time, UniqueConstraint, func
from datetime import datetime
from typing import Optional
import enum

from ..database import Base
from ..core.security import hash_password, verify_password
from ..core.timeutils import as_utc, utc_now

# Name of the unique constraint on users.email, matched when translating insert errors
EMAIL_UNIQUE_CONSTRAINT = "users_email_key"

class Role(str, enum.Enum):
    """
    Enumeration for account roles.
    
    Roles:
    - DOCTOR: Medical practitioners who read and update patient records
    - RECEPTIONIST: Front-desk staff who manage patient records
    """
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"

class TokenScope(str, enum.Enum):
    """
    Purpose a token may be used for.
    
    Scopes:
    - AUTHENTICATION: Bearer token presented on protected endpoints
    - ACTIVATION: Second scope; tokens of one scope never resolve for the other
    """
    AUTHENTICATION = "authentication"
    ACTIVATION = "activation"

class Account(Base):
    """
    Account Model - Fields common to doctors and receptionists
    
    Fields:
    - id: Primary key, assigned on creation
    - created_at: When the account was created
    - name: Account holder's name
    - email: Unique email address across all roles
    - password_hash: bcrypt hash of the password
    - contact: Contact number
    - shift_start / shift_end: Daily shift window
    - role: Discriminator ("doctor" or "receptionist")
    - version: Incremented on every successful update
    """
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),)

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    name = Column(String(500), nullable=False)
    email = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    contact = Column(BigInteger, nullable=True)
    shift_start = Column(Time, nullable=False)
    shift_end = Column(Time, nullable=False)
    role = Column(String(20), nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {
        "polymorphic_on": role,
        "version_id_col": version,
    }

    # Plaintext is kept only on the instance that set it, for validation
    password_plaintext = None

    def __repr__(self):
        """String representation of the Account model"""
        return f"<{type(self).__name__}(id={self.id}, email='{self.email}')>"

    def set_password(self, plaintext: str) -> None:
        """
        Hash and store a new password.
        
        Args:
            plaintext: Password as typed by the user
            
        Raises:
            ValueError: If the hash function rejects the password
        """
        self.password_hash = hash_password(plaintext)
        self.password_plaintext = plaintext

    def password_matches(self, plaintext: str) -> bool:
        """Check a candidate password against the stored hash"""
        return verify_password(plaintext, self.password_hash)

class Doctor(Account):
    """
    Doctor Model - Account with a medical specialization
    """
    specialization = Column(String, nullable=True)

    __mapper_args__ = {"polymorphic_identity": Role.DOCTOR.value}

class Receptionist(Account):
    """
    Receptionist Model - Account without role-specific fields
    """
    __mapper_args__ = {"polymorphic_identity": Role.RECEPTIONIST.value}

ACCOUNT_CLASSES = {
    Role.DOCTOR: Doctor,
    Role.RECEPTIONIST: Receptionist,
}

class Token(Base):
    """
    Token Model - Stored form of an opaque bearer token
    
    Only the SHA-256 hash of the plaintext is stored; lookups go through it.
    
    Fields:
    - hash: Hex digest of the token plaintext
    - email: Email of the owning account
    - role: Role of the owning account
    - expiry: Absolute expiry time
    - scope: Purpose of the token
    """
    __tablename__ = "tokens"

    hash = Column(String(64), primary_key=True)
    email = Column(String, nullable=False, index=True)
    role = Column(String(20), nullable=False)
    expiry = Column(DateTime(timezone=True), nullable=False)
    scope = Column(String(20), nullable=False)

    # Set only on freshly generated tokens, never persisted
    plaintext = None

    def __repr__(self):
        """String representation of the Token model"""
        return f"<Token(email='{self.email}', role='{self.role}', scope='{self.scope}')>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the token is past its expiry"""
        return (now or utc_now()) >= as_utc(self.expiry)
