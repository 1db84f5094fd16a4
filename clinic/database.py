"""
Database connection and session management.
Provides SQLAlchemy engine, session, and base class for models.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

def engine_options(database_url: str, timeout: int) -> dict:
    """
    Build engine keyword arguments that bound every call by `timeout` seconds.
    
    Args:
        database_url: SQLAlchemy connection string
        timeout: Ceiling in seconds for connecting and running a statement
        
    Returns:
        dict: Keyword arguments for create_engine
    """
    backend = make_url(database_url).get_backend_name()
    options = {"pool_pre_ping": True}
    
    if backend == "sqlite":
        options["connect_args"] = {"check_same_thread": False, "timeout": timeout}
    else:
        options["pool_timeout"] = timeout
        if backend == "postgresql":
            options["connect_args"] = {
                "connect_timeout": timeout,
                "options": f"-c statement_timeout={timeout * 1000}",
            }
    return options

# Create SQLAlchemy engine for database connection
engine = create_engine(
    settings.database_url,
    **engine_options(settings.database_url, settings.db_timeout_seconds)
)

# Create session factory for database sessions
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Create base class for declarative models
Base = declarative_base()

def get_db():
    """
    Database dependency - Creates and yields a database session.
    
    The session is automatically closed after the request is processed,
    even if an exception occurs during request handling.
    
    Yields:
        SQLAlchemy Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
