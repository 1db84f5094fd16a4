"""
Authentication-specific exceptions.
"""
from fastapi import status

from ..exceptions import AppException

class DuplicateEmailException(Exception):
    """Raised by the account registry when the email is already registered."""
    def __init__(self, email: str = None):
        super().__init__("duplicate email")
        self.email = email

class InvalidAuthenticationTokenException(AppException):
    """Exception raised when the bearer token is missing, malformed, unknown or expired."""
    def __init__(self, detail: str = "invalid or missing authentication token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )

class InvalidCredentialsException(AppException):
    """Exception raised when a valid token belongs to a role the endpoint does not accept."""
    def __init__(self, detail: str = "your user account doesn't have the necessary permissions to access this resource"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class AuthenticationFailedException(AppException):
    """Exception raised when an email/password pair does not match an account."""
    def __init__(self, detail: str = "invalid authentication credentials"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
