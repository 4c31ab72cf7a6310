from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, get_approved_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import (
    ChangePassword, MessageResponse, PasswordReset, PasswordResetConfirm,
    ProfileResponse, ProfileUpdate, TokenResponse, UserLogin, UserRegister
)
from ...models.profile import Profile

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Sign up. New accounts must be approved by a superadmin."""
    profile = AuthService(db).register_user(user_data)
    return ProfileResponse.model_validate(profile)

@router.post("/login", response_model=TokenResponse)
def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
):
    """Authenticate user and return an access token."""
    return AuthService(db).authenticate_user(login_data)

@router.get("/me", response_model=ProfileResponse)
def get_current_user_info(
    current_user: Profile = Depends(get_current_user)
):
    """Get current user information."""
    return ProfileResponse.model_validate(current_user)

@router.patch("/me", response_model=ProfileResponse)
def update_current_user(
    update: ProfileUpdate,
    current_user: Profile = Depends(get_approved_user),
    db: Session = Depends(get_db)
):
    """Update own display information."""
    profile = AuthService(db).update_profile(current_user, update)
    return ProfileResponse.model_validate(profile)

@router.post("/change-password", response_model=MessageResponse)
def change_password(
    password_data: ChangePassword,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change user password."""
    AuthService(db).change_password(current_user, password_data)
    return {"message": "Password changed successfully"}

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    reset_data: PasswordReset,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Request password reset."""
    AuthService(db).request_password_reset(reset_data.email)
    return {"message": "If an account with this email exists, a password reset link has been sent."}

@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    reset_data: PasswordResetConfirm,
    db: Session = Depends(get_db)
):
    """Reset password using reset token."""
    AuthService(db).reset_password(reset_data)
    return {"message": "Password reset successfully"}
