"""
Token Service - Issues, resolves and revokes opaque bearer tokens.

The plaintext of a token is handed to the caller exactly once; only its
SHA-256 hash is stored, and every lookup goes through that hash.
"""
from datetime import timedelta
from sqlalchemy.orm import Session
import logging

from ..core.security import (
    TOKEN_PLAINTEXT_LENGTH,
    generate_token_plaintext,
    hash_token,
    get_token_expiry_time
)
from ..core.validator import Validator
from ..exceptions import RecordNotFoundException
from .models import Role, Token, TokenScope

# Set up logging
logger = logging.getLogger(__name__)

def generate_token(email: str, role: Role, ttl: timedelta, scope: TokenScope) -> Token:
    """
    Build a new token without persisting it.
    
    Args:
        email: Email of the owning account
        role: Role of the owning account
        ttl: Time to live
        scope: Purpose of the token
        
    Returns:
        Token: Token with its plaintext attached
    """
    plaintext = generate_token_plaintext()
    token = Token(
        hash=hash_token(plaintext),
        email=email,
        role=Role(role).value,
        expiry=get_token_expiry_time(ttl),
        scope=TokenScope(scope).value
    )
    token.plaintext = plaintext
    return token

def validate_token_plaintext(v: Validator, plaintext: str) -> None:
    """
    Check the shape of a presented token before looking it up.
    
    Args:
        v: Validator collecting errors
        plaintext: Token as presented by the client
    """
    v.check(plaintext != "", "token", "must be provided")
    v.check(len(plaintext) == TOKEN_PLAINTEXT_LENGTH, "token", f"must be {TOKEN_PLAINTEXT_LENGTH} bytes long")

def new_token(db: Session, email: str, role: Role, ttl: timedelta, scope: TokenScope, commit: bool = True) -> Token:
    """
    Issue a token and store its hash.
    
    Args:
        db: Database session
        email: Email of the owning account
        role: Role of the owning account
        ttl: Time to live
        scope: Purpose of the token
        commit: Commit immediately; pass False to join the caller's transaction
        
    Returns:
        Token: Stored token with its plaintext attached
    """
    token = generate_token(email, role, ttl, scope)
    db.add(token)
    if commit:
        db.commit()
    else:
        db.flush()
    logger.info(f"Issued {token.scope} token for {email} ({token.role})")
    return token

def get_token_for_plaintext(db: Session, plaintext: str, scope: TokenScope) -> Token:
    """
    Resolve a presented token to its stored record.
    
    The lookup is by hash only; the scope is checked on the record afterwards,
    so a token issued for one purpose never resolves for another. Expiry is
    left to the caller, who owns the revocation side effect.
    
    Args:
        db: Database session
        plaintext: Token as presented by the client
        scope: Scope the caller expects
        
    Returns:
        Token: Stored token record
        
    Raises:
        RecordNotFoundException: If no token matches, or it has another scope
    """
    token = db.query(Token).filter(Token.hash == hash_token(plaintext)).first()
    if token is None or token.scope != TokenScope(scope).value:
        raise RecordNotFoundException()
    return token

def delete_all_for_user(db: Session, scope: TokenScope, email: str) -> int:
    """
    Delete every token of one scope belonging to an account.
    
    Args:
        db: Database session
        scope: Scope of the tokens to delete
        email: Email of the owning account
        
    Returns:
        int: Number of deleted tokens
    """
    deleted = db.query(Token).filter(
        Token.scope == TokenScope(scope).value,
        Token.email == email
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Revoked {deleted} {TokenScope(scope).value} tokens for {email}")
    return deleted
