"""Registration, login and profile endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_auth_service, get_current_user, get_db
from app.api.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from app.models.orm import User
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account and return an access token."""
    user = auth_service.register(db, request.username, request.email, request.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=auth_service.create_token(user.id),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = auth_service.authenticate(db, request.email, request.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=auth_service.create_token(user.id),
    )


@router.get("/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    request: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return auth_service.update_profile(
        db,
        user,
        username=request.username,
        email=request.email,
        profile_image=request.profile_image,
    )


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.change_password(db, user, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")
