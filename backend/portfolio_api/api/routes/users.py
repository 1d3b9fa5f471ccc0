import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer
from sqlalchemy.orm import Session
from portfolio_api.api.dependencies import get_context, get_current_claims, get_db
from portfolio_api.api.error_boundary import handler_boundary
from portfolio_api.core.context import AppContext
from portfolio_api.core.errors import AccessDeniedError, UploadFailureError
from portfolio_api.core.security import TokenClaims
from portfolio_api.services.profile_service import profile_service
from portfolio_api.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    # Same normalization as registration, so stored and looked-up emails match
    email: EmailStr
    password: str


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """Public projection of a user record; the password hash never leaves"""
    id: str
    name: str
    email: str
    is_admin: bool = Field(serialization_alias="isAdmin")
    created_at: Optional[datetime] = Field(
        default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(
        default=None, serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at', 'updated_at')
    def serialize_timestamps(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


class LoginUser(BaseModel):
    id: str
    name: str
    email: str


class LoginResponse(BaseModel):
    message: str
    token: str
    user: LoginUser


class CurrentUserResponse(BaseModel):
    id: str
    name: str
    is_admin: bool = Field(serialization_alias="isAdmin")

    model_config = ConfigDict(from_attributes=True)


@router.post("/add-user", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def add_user(
    user_data: UserCreate,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Register a user and create their default profile"""
    with handler_boundary("Error creating user", db):
        db_user = user_service.create_user(
            db,
            context.password_hasher,
            name=user_data.name,
            email=user_data.email,
            password=user_data.password,
        )

        # Second, independent write: if it fails the user record stays and
        # the profile sweeper fills the gap later
        profile_service.create_for_user(db, db_user.id)

    return {"message": "User created successfully!"}


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """Check credentials and issue a bearer token"""
    with handler_boundary("Error logging in", db):
        user = user_service.authenticate(
            db, context.password_hasher, credentials.email, credentials.password)
        token = context.token_service.issue(user.id, user.email)

    return {
        "message": "Login successful",
        "token": token,
        "user": {"id": user.id, "name": user.name, "email": user.email},
    }


@router.get("/user", response_model=CurrentUserResponse)
def get_own_user(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db)
):
    """The caller's own id, name and admin flag"""
    with handler_boundary("Error fetching user", db):
        return user_service.get_by_id(db, claims.user_id)


@router.get("/get-users", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db)):
    """Every user, projected without password hashes"""
    with handler_boundary("Error fetching users", db):
        return user_service.list_all(db)


@router.delete("/deleteUser/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """
    Admin-only: delete a user, their profile and their avatar image.

    The image deletion is best-effort and a target that does not exist is
    not an error, so any admin call that reaches the store answers 200.
    """
    with handler_boundary("Error deleting user", db):
        requester = user_service.find_by_id(db, claims.user_id)
        if not requester or not requester.is_admin:
            raise AccessDeniedError()

        target_profile = profile_service.find_by_user_id(db, user_id)
        if target_profile and target_profile.link:
            try:
                context.image_host.delete_by_url(target_profile.link)
            except UploadFailureError:
                logger.warning(
                    f"Could not delete avatar of user {user_id}; continuing")

        user_service.delete_by_id(db, user_id)
        profile_service.delete_by_user_id(db, user_id)
        logger.info(f"User {user_id} deleted by admin {requester.id}")

    return {"message": "User deleted successfully"}
