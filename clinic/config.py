"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.
    
    Attributes:
        database_url: SQLAlchemy connection string (PostgreSQL in production)
        db_timeout_seconds: Ceiling applied to every database call
        create_tables: Whether to create missing tables at startup
        
        # Token settings
        token_ttl_hours: Lifetime of an authentication token
        bcrypt_rounds: Work factor of the password hash
        
        # Rate limiter settings
        limiter_enabled: Whether per-client rate limiting is active
        limiter_rps: Tokens added to each client bucket per second
        limiter_burst: Maximum bucket size
        limiter_idle_seconds: Clients idle longer than this are evicted
        limiter_sweep_seconds: Interval between eviction sweeps
        
        # HTTP settings
        cors_trusted_origins: Origins allowed by the CORS middleware
        environment: Deployment environment reported by the healthcheck
        log_level: Root logging level
    """
    # Database settings
    database_url: str = "sqlite:///./clinic.db"
    db_timeout_seconds: int = 3
    create_tables: bool = True
    
    # Token settings
    token_ttl_hours: int = 72
    bcrypt_rounds: int = 12
    
    # Rate limiter settings
    limiter_enabled: bool = True
    limiter_rps: float = 2
    limiter_burst: int = 4
    limiter_idle_seconds: int = 180
    limiter_sweep_seconds: int = 60
    
    # HTTP settings
    cors_trusted_origins: List[str] = []
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
