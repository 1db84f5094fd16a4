"""
Account Registry - Validation, persistence and registration of doctor and
receptionist accounts.

Doctors and receptionists go through the same flow; only the role-specific
checks differ.
"""
import logging
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple
from email_validator import validate_email as check_email_address, EmailNotValidError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..core.timeutils import parse_shift_time
from ..core.validator import Validator, validate_contact_number
from ..exceptions import EditConflictException, FailedValidationException, RecordNotFoundException
from .exceptions import AuthenticationFailedException, DuplicateEmailException
from .models import ACCOUNT_CLASSES, EMAIL_UNIQUE_CONSTRAINT, Account, Doctor, Role, Token, TokenScope
from .schemas import AccountRegistration, AccountUpdate
from .tokens import new_token

# Set up logging
logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(hours=settings.token_ttl_hours)

MAX_NAME_BYTES = 500
MIN_PASSWORD_BYTES = 8
MAX_PASSWORD_BYTES = 72
MIN_CONTACT_DIGITS = 10
MIN_SPECIALIZATION_LENGTH = 4

DUPLICATE_EMAIL_MESSAGE = "a user with this email address already exists"
SHIFT_FORMAT_MESSAGE = "must be a time such as 3:04 PM"

# ============================================================================
# VALIDATION
# ============================================================================

def validate_email(v: Validator, email: str) -> None:
    """Check that an email address is present and well formed"""
    v.check(email != "", "email", "must be provided")
    if email:
        try:
            check_email_address(email, check_deliverability=False)
        except EmailNotValidError:
            v.add_error("email", "must be a valid email address")

def validate_plaintext_password(v: Validator, plaintext: str) -> None:
    """Check password length limits (in bytes, as the hash function sees them)"""
    size = len(plaintext.encode("utf-8"))
    v.check(plaintext != "", "password", "must be provided")
    v.check(size >= MIN_PASSWORD_BYTES, "password", f"must be at least {MIN_PASSWORD_BYTES} bytes long")
    v.check(size <= MAX_PASSWORD_BYTES, "password", f"must be at most {MAX_PASSWORD_BYTES} bytes long")

def validate_shift(v: Validator, shift_start, shift_end) -> None:
    """Check that both shift timings are set and the shift ends after it starts"""
    v.check(shift_start is not None, "shift_start", "must be provided")
    v.check(shift_end is not None, "shift_end", "must be provided")
    if shift_start is not None and shift_end is not None:
        v.check(shift_end > shift_start, "shift", "shift timing should be valid")

def validate_contact(v: Validator, contact: Optional[int], required: bool) -> None:
    """Check a contact number, which doctors must provide"""
    if contact is None:
        v.check(not required, "contact", "must be provided")
        return
    validate_contact_number(v, contact, MIN_CONTACT_DIGITS)

def _validate_account(v: Validator, account: Account, contact_required: bool) -> None:
    v.check(bool(account.name), "name", "must be provided")
    v.check(
        len((account.name or "").encode("utf-8")) <= MAX_NAME_BYTES,
        "name",
        f"must be at most {MAX_NAME_BYTES} bytes long"
    )
    validate_email(v, account.email or "")
    validate_contact(v, account.contact, required=contact_required)
    validate_shift(v, account.shift_start, account.shift_end)

    if account.password_plaintext is not None:
        validate_plaintext_password(v, account.password_plaintext)

    if account.password_hash is None and "password" not in v.errors:
        raise RuntimeError("missing password hash for account")

def validate_doctor(v: Validator, doctor: Account) -> None:
    """
    Validate a doctor account.
    
    Args:
        v: Validator collecting errors
        doctor: Doctor account to check
        
    Raises:
        RuntimeError: If no password hash has been set
    """
    _validate_account(v, doctor, contact_required=True)
    v.check(
        len(doctor.specialization or "") >= MIN_SPECIALIZATION_LENGTH,
        "specialization",
        f"must be at least {MIN_SPECIALIZATION_LENGTH} characters long"
    )

def validate_receptionist(v: Validator, receptionist: Account) -> None:
    """
    Validate a receptionist account.
    
    Args:
        v: Validator collecting errors
        receptionist: Receptionist account to check
        
    Raises:
        RuntimeError: If no password hash has been set
    """
    _validate_account(v, receptionist, contact_required=False)

ACCOUNT_VALIDATORS: Dict[Role, Callable[[Validator, Account], None]] = {
    Role.DOCTOR: validate_doctor,
    Role.RECEPTIONIST: validate_receptionist,
}

def validate_account(v: Validator, account: Account) -> None:
    """Run the checks matching the account's role"""
    ACCOUNT_VALIDATORS[Role(account.role)](v, account)

# ============================================================================
# PERSISTENCE
# ============================================================================

def _is_duplicate_email(exc: IntegrityError) -> bool:
    # PostgreSQL names the constraint, SQLite names the column
    message = str(exc.orig)
    return EMAIL_UNIQUE_CONSTRAINT in message or "users.email" in message

def insert_account(db: Session, account: Account, commit: bool = True) -> Account:
    """
    Persist a new account.
    
    Args:
        db: Database session
        account: Validated account with a password hash
        commit: Commit immediately; pass False to keep the transaction open
        
    Returns:
        Account: Stored account with id, created_at and version set
        
    Raises:
        DuplicateEmailException: If the email is already registered
    """
    db.add(account)
    try:
        if commit:
            db.commit()
            db.refresh(account)
        else:
            db.flush()
    except IntegrityError as e:
        db.rollback()
        if _is_duplicate_email(e):
            logger.warning(f"Account insert rejected: email {account.email} already registered")
            raise DuplicateEmailException(account.email) from e
        raise
    return account

def get_account_by_email(db: Session, email: str) -> Account:
    """
    Get an account by email.
    
    Args:
        db: Database session
        email: Account email address
        
    Returns:
        Account: Doctor or Receptionist
        
    Raises:
        RecordNotFoundException: If no account has this email
    """
    account = db.query(Account).filter(Account.email == email).first()
    if not account:
        raise RecordNotFoundException()
    return account

def update_account(db: Session, account: Account, expected_version: Optional[int] = None) -> Account:
    """
    Write pending changes of a loaded account.
    
    The UPDATE is conditioned on the version that was read, and bumps it.
    
    Args:
        db: Database session
        account: Account loaded in this session and modified in place
        expected_version: Version the client last saw, if it sent one
        
    Returns:
        Account: Refreshed account
        
    Raises:
        EditConflictException: If the stored version moved on
        RecordNotFoundException: If the account was deleted meanwhile
        DuplicateEmailException: If the new email belongs to another account
    """
    account_id = account.id
    if expected_version is not None and expected_version != account.version:
        db.rollback()
        raise EditConflictException()
    
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        if db.query(Account.id).filter(Account.id == account_id).first() is None:
            raise RecordNotFoundException()
        raise EditConflictException()
    except IntegrityError as e:
        db.rollback()
        if _is_duplicate_email(e):
            raise DuplicateEmailException(account.email) from e
        raise
    
    db.refresh(account)
    logger.info(f"Account {account_id} updated to version {account.version}")
    return account

# ============================================================================
# REGISTRATION AND LOGIN
# ============================================================================

def _read_shift(v: Validator, field: str, value: Optional[str]):
    if value is None:
        return None
    parsed = parse_shift_time(value)
    v.check(parsed is not None, field, SHIFT_FORMAT_MESSAGE)
    return parsed

def _set_password(v: Validator, account: Account, plaintext: str) -> None:
    # A password that fails validation is never hashed
    account.password_plaintext = plaintext
    validate_plaintext_password(v, plaintext)
    if "password" not in v.errors:
        account.set_password(plaintext)

def register_account(db: Session, role: Role, data: AccountRegistration) -> Tuple[Account, Token]:
    """
    Register a doctor or receptionist and issue their first authentication token.
    
    The account and its token are committed in one transaction.
    
    Args:
        db: Database session
        role: Role of the new account
        data: Registration input
        
    Returns:
        Tuple of the stored account and the token (with plaintext)
        
    Raises:
        FailedValidationException: If any field is invalid or the email is taken
    """
    role = Role(role)
    logger.info(f"{role.value.capitalize()} registration attempt for email: {data.email}")
    
    v = Validator()
    account = ACCOUNT_CLASSES[role](
        name=data.name or "",
        email=data.email or "",
        contact=data.contact,
        shift_start=_read_shift(v, "shift_start", data.shift_start),
        shift_end=_read_shift(v, "shift_end", data.shift_end)
    )
    if isinstance(account, Doctor):
        account.specialization = data.specialization or ""
    
    _set_password(v, account, data.password or "")
    validate_account(v, account)
    v.raise_if_invalid()
    
    try:
        insert_account(db, account, commit=False)
    except DuplicateEmailException:
        raise FailedValidationException({"email": DUPLICATE_EMAIL_MESSAGE})
    
    token = new_token(db, account.email, role, TOKEN_TTL, TokenScope.AUTHENTICATION, commit=False)
    db.commit()
    db.refresh(account)
    
    logger.info(f"{role.value.capitalize()} account created: {account.id}")
    return account, token

def authenticate_account(db: Session, email: Optional[str], password: Optional[str]) -> Token:
    """
    Exchange an email/password pair for a new authentication token.
    
    Args:
        db: Database session
        email: Account email address
        password: Plain text password
        
    Returns:
        Token: New authentication token (with plaintext)
        
    Raises:
        FailedValidationException: If the input is malformed
        AuthenticationFailedException: If no account matches the pair
    """
    v = Validator()
    validate_email(v, email or "")
    validate_plaintext_password(v, password or "")
    v.raise_if_invalid()
    
    try:
        account = get_account_by_email(db, email)
    except RecordNotFoundException:
        logger.warning(f"Login failed: no account for {email}")
        raise AuthenticationFailedException()
    
    if not account.password_matches(password):
        logger.warning(f"Login failed: wrong password for {email}")
        raise AuthenticationFailedException()
    
    return new_token(db, account.email, Role(account.role), TOKEN_TTL, TokenScope.AUTHENTICATION)

def update_own_account(db: Session, email: str, data: AccountUpdate) -> Account:
    """
    Apply a partial update to the account owning `email`.
    
    Only fields present in the input are changed; the merged account is
    validated as a whole before it is written.
    
    Args:
        db: Database session
        email: Email of the authenticated account
        data: Fields to change and optionally the version last read
        
    Returns:
        Account: Updated account
    """
    account = get_account_by_email(db, email)
    v = Validator()
    
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in changes:
        account.name = changes["name"]
    if "contact" in changes:
        account.contact = changes["contact"]
    if "specialization" in changes and isinstance(account, Doctor):
        account.specialization = changes["specialization"]
    if "shift_start" in changes:
        account.shift_start = _read_shift(v, "shift_start", changes["shift_start"])
    if "shift_end" in changes:
        account.shift_end = _read_shift(v, "shift_end", changes["shift_end"])
    if "password" in changes:
        _set_password(v, account, changes["password"])
    
    validate_account(v, account)
    if not v.valid:
        db.rollback()
        v.raise_if_invalid()
    
    return update_account(db, account, expected_version=data.version)
