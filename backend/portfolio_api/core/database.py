from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for all database models
# All models inherit from this to get SQLAlchemy ORM functionality
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create database engine - manages connection pool"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI may run sync handlers on worker threads
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Create session factory - each request gets a new session.

    autocommit=False: Changes require explicit commit
    autoflush=False: Don't auto-flush before queries
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    # Importing models registers their tables on Base.metadata
    from portfolio_api.models import profile, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
