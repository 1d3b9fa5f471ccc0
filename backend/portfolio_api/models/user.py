import uuid
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func
from portfolio_api.core.database import Base


def generate_id() -> str:
    """System-generated record identifier (24 hex chars)"""
    return uuid.uuid4().hex[:24]


class User(Base):
    """
    User identity record.

    Stores login credentials and the admin flag. Passwords are stored as
    salted bcrypt hashes, never plaintext, and are never serialized back
    to clients.
    """
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    # Email is unique and indexed for fast lookups during login
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    # Timestamps are managed by the database
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())
