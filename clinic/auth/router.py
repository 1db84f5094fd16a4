"""
Authentication routes: registration, login and the current account.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..core.timeutils import as_utc
from ..exceptions import AppException
from .dependencies import Principal, require_receptionist_or_doctor
from .models import Role
from .schemas import AccountRegistration, AccountResponse, AccountUpdate, TokenResponse, UserLogin
from .service import authenticate_account, get_account_by_email, register_account, update_own_account

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/v1", tags=["Authentication"])

def _account_body(account) -> dict:
    return AccountResponse.model_validate(account).model_dump(exclude_none=True)

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: AccountRegistration,
    role: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Register a doctor or a receptionist.
    
    The `Role` header selects the kind of account. The response carries the
    new account and its first authentication token, shown only this once.
    """
    try:
        account_role = Role(role)
    except ValueError:
        raise AppException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="the Role header must be 'doctor' or 'receptionist'"
        )
    
    account, token = register_account(db, account_role, data)
    return {account_role.value: _account_body(account), "token": token.plaintext}

@router.post("/tokens/authentication", status_code=status.HTTP_201_CREATED)
def create_authentication_token(data: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange an email and password for a new authentication token.
    """
    token = authenticate_account(db, data.email, data.password)
    return {"authentication_token": TokenResponse(token=token.plaintext, expiry=as_utc(token.expiry))}

@router.get("/accounts/me")
def get_my_account(
    principal: Principal = Depends(require_receptionist_or_doctor),
    db: Session = Depends(get_db)
):
    """
    Get the account the bearer token belongs to.
    """
    account = get_account_by_email(db, principal.email)
    return {principal.role.value: _account_body(account)}

@router.patch("/accounts/me")
def update_my_account(
    data: AccountUpdate,
    principal: Principal = Depends(require_receptionist_or_doctor),
    db: Session = Depends(get_db)
):
    """
    Update name, contact, specialization, shift or password of the current account.
    
    Send the `version` last read to have the update rejected with 409 if the
    account changed in between.
    """
    account = update_own_account(db, principal.email, data)
    return {principal.role.value: _account_body(account)}
