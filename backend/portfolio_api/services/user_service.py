import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from portfolio_api.core.errors import BadCredentialsError, DuplicateEmailError, NotFoundError
from portfolio_api.core.security import PasswordHasher
from portfolio_api.models.user import User

logger = logging.getLogger(__name__)

USER_NOT_FOUND_MESSAGE = "User not found"


class UserService:
    """Credential store operations on User records"""

    @staticmethod
    def create_user(
        db: Session,
        hasher: PasswordHasher,
        name: str,
        email: str,
        password: str
    ) -> User:
        """Hash the password and persist a new user"""
        # Explicit check gives a clean error; the unique constraint covers races
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            raise DuplicateEmailError()

        db_user = User(
            name=name,
            email=email,
            hashed_password=hasher.hash(password),
        )
        db.add(db_user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateEmailError()
        # Refresh to load server-generated timestamps
        db.refresh(db_user)

        logger.info(f"Created user {db_user.id}")
        return db_user

    @staticmethod
    def authenticate(db: Session, hasher: PasswordHasher, email: str, password: str) -> User:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)

        if not hasher.verify(password, user.hashed_password):
            logger.info(f"Rejected login for user {user.id}: password mismatch")
            raise BadCredentialsError()

        return user

    @staticmethod
    def find_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> User:
        user = UserService.find_by_id(db, user_id)
        if not user:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)
        return user

    @staticmethod
    def list_all(db: Session) -> List[User]:
        return db.query(User).all()

    @staticmethod
    def delete_by_id(db: Session, user_id: str) -> None:
        """Delete a user; a missing id is not an error"""
        db.query(User).filter(User.id == user_id).delete(
            synchronize_session=False)
        db.commit()


user_service = UserService()
