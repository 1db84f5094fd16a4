"""
FastAPI dependencies for authentication and authorization.

Every protected endpoint declares the roles it accepts through `require_roles`.
A request is forwarded only once its bearer token is well formed, known,
issued to an accepted role and not expired.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..core.validator import Validator
from ..exceptions import RecordNotFoundException
from .exceptions import InvalidAuthenticationTokenException, InvalidCredentialsException
from .models import Role, TokenScope
from .tokens import delete_all_for_user, get_token_for_plaintext, validate_token_plaintext

# Set up logging
logger = logging.getLogger(__name__)

# Bearer scheme; a missing or malformed header comes through as None
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Account a request is made on behalf of."""
    email: str
    role: Role


def require_roles(*allowed_roles: Role):
    """
    Dependency factory to require specific roles.
    
    Args:
        allowed_roles: Roles that are allowed access (one or two per endpoint)
        
    Returns:
        Function that resolves the bearer token to a Principal
    """
    accepted = frozenset(Role(role) for role in allowed_roles)

    def role_checker(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        db: Session = Depends(get_db)
    ) -> Principal:
        # Extract; the scheme must be exactly "Bearer"
        if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
            raise InvalidAuthenticationTokenException()
        plaintext = credentials.credentials
        
        # Syntactic validation
        v = Validator()
        validate_token_plaintext(v, plaintext)
        v.raise_if_invalid()
        
        # Resolve; storage failures other than a miss propagate as server errors
        try:
            token = get_token_for_plaintext(db, plaintext, TokenScope.AUTHENTICATION)
        except RecordNotFoundException:
            raise InvalidAuthenticationTokenException()
        
        # Role check
        role = Role(token.role)
        if role not in accepted:
            logger.warning(
                f"Access denied for {token.email}: role {role.value} not in "
                f"{sorted(r.value for r in accepted)}"
            )
            raise InvalidCredentialsException()
        
        # Expiry check; a failed cleanup fails the request
        if token.is_expired():
            email = token.email
            delete_all_for_user(db, TokenScope.AUTHENTICATION, email)
            logger.info(f"Expired token presented for {email}; tokens revoked")
            raise InvalidAuthenticationTokenException()
        
        return Principal(email=token.email, role=role)

    return role_checker


# Convenience dependencies for specific roles
require_receptionist = require_roles(Role.RECEPTIONIST)
require_receptionist_or_doctor = require_roles(Role.RECEPTIONIST, Role.DOCTOR)
