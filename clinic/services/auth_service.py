from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
from typing import Optional
import logging

from ..models.profile import Profile
from ..core.config import settings
from ..core.exceptions import InvalidRequest
from ..core.security import (
    AuthenticationError, UserRole, create_token, generate_password_reset_token,
    get_password_hash, verify_password
)
from ..schemas.auth import (
    ChangePassword, PasswordResetConfirm, ProfileResponse, ProfileUpdate,
    TokenResponse, UserLogin, UserRegister
)

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> Profile:
        """Sign up a new admin. The account waits for superadmin approval."""
        email = user_data.email.lower()
        if self.db.query(Profile).filter(Profile.email == email).first():
            raise InvalidRequest("Email already registered")

        profile = Profile(
            email=email,
            password_hash=get_password_hash(user_data.password),
            role=UserRole.ADMIN,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            clinic_name=user_data.clinic_name,
            phone=user_data.phone,
            approved=False,
            is_active=True,
        )

        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)

        return profile

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        profile = self.db.query(Profile).filter(
            Profile.email == login_data.email.lower()
        ).first()

        if not profile:
            raise AuthenticationError("Invalid email or password")

        # Check account lockout
        if profile.locked_until and profile.locked_until > datetime.utcnow():
            raise HTTPException(
                status_code=status.HTTP_423_LOCKED,
                detail="Account is temporarily locked"
            )

        if not verify_password(login_data.password, profile.password_hash):
            self._handle_failed_login(profile)
            raise AuthenticationError("Invalid email or password")

        if not profile.is_active:
            raise AuthenticationError("Account is deactivated")

        profile.failed_login_attempts = 0
        profile.locked_until = None
        profile.last_login = datetime.utcnow()
        self.db.commit()

        token = create_token(profile.id, profile.email, profile.role)

        return TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            user=ProfileResponse.model_validate(profile)
        )

    def update_profile(self, profile: Profile, update: ProfileUpdate) -> Profile:
        for field, value in update.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def change_password(self, profile: Profile, password_data: ChangePassword) -> None:
        if not verify_password(password_data.current_password, profile.password_hash):
            raise InvalidRequest("Current password is incorrect")

        profile.password_hash = get_password_hash(password_data.new_password)
        profile.must_change_password = False
        self.db.commit()

    def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a password reset token. Unknown emails are ignored silently."""
        profile = self.db.query(Profile).filter(Profile.email == email.lower()).first()
        if not profile:
            return None

        reset_token = generate_password_reset_token()
        profile.password_reset_token = reset_token
        profile.password_reset_expires = datetime.utcnow() + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
        )
        self.db.commit()

        # TODO: deliver the reset link by email once SMTP settings exist
        logger.info(f"Password reset requested for profile {profile.id}")
        return reset_token

    def reset_password(self, reset_data: PasswordResetConfirm) -> None:
        """Reset password using reset token."""
        profile = self.db.query(Profile).filter(
            Profile.password_reset_token == reset_data.token,
            Profile.password_reset_expires > datetime.utcnow()
        ).first()

        if not profile:
            raise InvalidRequest("Invalid or expired reset token")

        profile.password_hash = get_password_hash(reset_data.new_password)
        profile.password_reset_token = None
        profile.password_reset_expires = None
        profile.failed_login_attempts = 0
        profile.locked_until = None
        profile.must_change_password = False

        self.db.commit()

    def ensure_initial_superadmin(self, email: str, password: str) -> Optional[Profile]:
        """Create the first superadmin when none exists yet."""
        exists = self.db.query(Profile).filter(
            Profile.role == UserRole.SUPERADMIN
        ).first()
        if exists:
            return None

        email = email.lower()
        profile = self.db.query(Profile).filter(Profile.email == email).first()
        if profile is None:
            profile = Profile(email=email, password_hash=get_password_hash(password))
            self.db.add(profile)
        profile.role = UserRole.SUPERADMIN
        profile.approved = True
        profile.is_active = True
        self.db.commit()
        logger.info(f"Initial superadmin {email} created")
        return profile

    def _handle_failed_login(self, profile: Profile):
        """Handle failed login attempt."""
        profile.failed_login_attempts = (profile.failed_login_attempts or 0) + 1

        if profile.failed_login_attempts >= settings.MAX_FAILED_LOGINS:
            profile.locked_until = datetime.utcnow() + timedelta(minutes=settings.LOCKOUT_MINUTES)

        self.db.commit()
