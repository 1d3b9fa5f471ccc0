from typing import List, Optional
from sqlalchemy.orm import Session
from portfolio_api.core.errors import NotFoundError
from portfolio_api.models.profile import Profile

PROFILE_NOT_FOUND_MESSAGE = "Profile not found"


class ProfileService:
    """Profile store operations, keyed by the owning user's id"""

    @staticmethod
    def create_for_user(db: Session, user_id: str) -> Profile:
        """Insert a profile with placeholder values"""
        db_profile = Profile(user_id=user_id)
        db.add(db_profile)
        db.commit()
        db.refresh(db_profile)
        return db_profile

    @staticmethod
    def find_by_user_id(db: Session, user_id: str) -> Optional[Profile]:
        # Fixed order so reads and writes pick the same row if duplicates exist
        return (
            db.query(Profile)
            .filter(Profile.user_id == user_id)
            .order_by(Profile.id)
            .first()
        )

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Profile:
        profile = ProfileService.find_by_user_id(db, user_id)
        if not profile:
            raise NotFoundError(PROFILE_NOT_FOUND_MESSAGE)
        return profile

    @staticmethod
    def list_all(db: Session) -> List[Profile]:
        return db.query(Profile).all()

    @staticmethod
    def update_partial(
        db: Session,
        user_id: str,
        name: Optional[str] = None,
        age: Optional[int] = None,
        biography: Optional[str] = None
    ) -> Profile:
        """
        Merge supplied fields into the user's profile.

        Only truthy values are applied: None, "" and 0 all leave the stored
        value untouched, so a field can never be cleared or age set to 0.
        """
        profile = ProfileService.get_by_user_id(db, user_id)

        if name:
            profile.name = name
        if age:
            profile.age = age
        if biography:
            profile.biography = biography

        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def set_avatar_link(db: Session, user_id: str, url: str) -> Profile:
        profile = ProfileService.get_by_user_id(db, user_id)
        profile.link = url
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def delete_by_user_id(db: Session, user_id: str) -> None:
        # Removes at most one profile, mirroring a find-one-and-delete
        profile = ProfileService.find_by_user_id(db, user_id)
        if profile:
            db.delete(profile)
            db.commit()


profile_service = ProfileService()
