import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from portfolio_api.api.dependencies import get_context, get_current_claims, get_db
from portfolio_api.api.error_boundary import handler_boundary
from portfolio_api.core.context import AppContext
from portfolio_api.core.errors import ValidationFailureError
from portfolio_api.core.security import TokenClaims
from portfolio_api.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles"])


class ProfileResponse(BaseModel):
    id: str
    user_id: str = Field(serialization_alias="userId")
    name: str
    age: int
    biography: str
    link: str

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    # Falsy values (None, "", 0) are ignored by the merge
    name: Optional[str] = None
    age: Optional[int] = None
    biography: Optional[str] = None


class UploadResponse(BaseModel):
    message: str
    image_url: str = Field(serialization_alias="imageUrl")


@router.get("/profile", response_model=ProfileResponse)
def get_own_profile(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db)
):
    """The caller's own profile"""
    with handler_boundary("Error fetching profile", db):
        return profile_service.get_by_user_id(db, claims.user_id)


@router.get("/profiles", response_model=List[ProfileResponse])
def list_profiles(db: Session = Depends(get_db)):
    with handler_boundary("Server error while fetching profiles", db):
        return profile_service.list_all(db)


@router.put("/update-profile", response_model=ProfileResponse)
def update_own_profile(
    update: ProfileUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db)
):
    """Partial update of the caller's profile (truthy fields only)"""
    with handler_boundary("Error updating profile", db):
        return profile_service.update_partial(
            db,
            claims.user_id,
            name=update.name,
            age=update.age,
            biography=update.biography,
        )


@router.post("/upload", response_model=UploadResponse)
def upload_avatar(
    image: Optional[UploadFile] = File(None),
    claims: TokenClaims = Depends(get_current_claims),
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Upload a new profile picture.

    The image goes to the image host first; the returned URL is then stored
    on the caller's profile. A missing profile answers 404 after the upload
    has already happened.
    """
    if image is None:
        raise ValidationFailureError("No file uploaded")

    with handler_boundary("Upload failed", db):
        content = image.file.read()
        image_url = context.image_host.upload(content, filename=image.filename)
        profile_service.set_avatar_link(db, claims.user_id, image_url)
        logger.info(f"Avatar updated for user {claims.user_id}")

    return {
        "message": "Profile picture updated successfully!",
        "image_url": image_url,
    }
