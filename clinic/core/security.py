"""
Core security utilities for password handling and opaque bearer tokens.
"""
from datetime import timedelta
from passlib.context import CryptContext
import base64
import hashlib
import secrets
import logging

from ..config import settings
from .timeutils import utc_now

# Set up logging
logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72

# Random bytes behind each token; 16 bytes base32-encode to 26 characters
TOKEN_ENTROPY_BYTES = 16
TOKEN_PLAINTEXT_LENGTH = 26

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    
    Args:
        password: Plain text password
        
    Returns:
        str: Hashed password
        
    Raises:
        ValueError: If the password is longer than bcrypt can hash
    """
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes long")
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.
    
    A mismatch returns False. A corrupt or unrecognized hash raises.
    
    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against
        
    Returns:
        bool: True if password matches hash
        
    Raises:
        ValueError: If the stored hash cannot be interpreted
    """
    return pwd_context.verify(plain_password, hashed_password)

def generate_token_plaintext() -> str:
    """
    Generate the plaintext of an opaque bearer token.
    
    Returns:
        str: Unpadded base32 encoding of 16 random bytes
    """
    random_bytes = secrets.token_bytes(TOKEN_ENTROPY_BYTES)
    return base64.b32encode(random_bytes).decode("ascii").rstrip("=")

def hash_token(token: str) -> str:
    """
    Hash a token for secure storage.
    
    Args:
        token: Token to hash
        
    Returns:
        str: Hashed token
    """
    return hashlib.sha256(token.encode()).hexdigest()

def get_token_expiry_time(ttl: timedelta):
    """
    Get token expiration time.
    
    Args:
        ttl: Time to live from now
        
    Returns:
        datetime: Expiration time
    """
    return utc_now() + ttl
