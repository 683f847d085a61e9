"""
SQLAlchemy setup for the SQL-backed host database
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Create base class for models
Base = declarative_base()

metadata = Base.metadata


def is_database_url(location: str) -> bool:
    """True if location is an SQLAlchemy URL rather than a file path"""
    return "://" in location


def create_database_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine and make sure all tables exist"""
    # Models register themselves on Base.metadata when imported
    from ..models import dns  # noqa: F401

    engine = create_engine(database_url, echo=echo, future=True)
    metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)
