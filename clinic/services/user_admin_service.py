from dataclasses import dataclass
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import Forbidden, InvalidRequest, NotFound
from ..core.security import UserRole, generate_temp_password, get_password_hash
from ..models.profile import Profile
from ..repositories.audit import AuditStore
from ..repositories.profile import ProfileStore
from ..schemas.user import InviteUserRequest
from .role_service import RoleService

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class InvitedUser:
    profile: Profile
    temporary_password: str

@dataclass(frozen=True)
class PasswordResetResult:
    generated_password: Optional[str]

class UserAdminService:
    """User management for the admin panel."""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileStore(db)
        self.audit = AuditStore(db)

    def list_users(self, role: Optional[UserRole] = None) -> List[Profile]:
        return self.profiles.list_profiles(role)

    def superadmin_count(self) -> int:
        return self.profiles.count_by_role(UserRole.SUPERADMIN)

    def invite_user(self, actor: Profile, invite: InviteUserRequest) -> InvitedUser:
        """Create an approved admin with a temporary password.

        Invited users always start as admin; promotion goes through
        ``change_role``.
        """
        email = invite.email.lower()
        if self.profiles.get_by_email(email):
            raise InvalidRequest("User with this email already exists.")

        temp_password = generate_temp_password()
        profile = self.profiles.add(Profile(
            email=email,
            password_hash=get_password_hash(temp_password),
            role=UserRole.ADMIN,
            first_name=invite.first_name,
            last_name=invite.last_name,
            approved=True,
            is_active=True,
            invited_by=actor.id,
            must_change_password=True,
        ))
        self.profiles.commit()
        logger.info(f"User {actor.id} invited {email} as admin")

        self.audit.record(
            actor.id,
            "invite_user",
            target_id=profile.id,
            new_role=UserRole.ADMIN.value,
            details={"email": email, "invited_by": actor.id},
        )
        return InvitedUser(profile=profile, temporary_password=temp_password)

    def change_role(self, actor: Profile, target_id: int, new_role: UserRole):
        return RoleService(self.profiles, self.audit).change_role(actor.id, target_id, new_role)

    def set_approval(self, actor: Profile, target_id: int, approved: bool) -> Profile:
        if actor.id == target_id:
            raise InvalidRequest("Cannot change your own approval")
        profile = self._get(target_id)
        profile.approved = approved
        self.profiles.commit()

        self.audit.record(
            actor.id,
            "approve_user" if approved else "revoke_approval",
            target_id=target_id,
        )
        return profile

    def delete_user(self, actor: Profile, target_id: int) -> None:
        if actor.id == target_id:
            raise InvalidRequest("Cannot delete your own account.")
        target = self._get(target_id)
        if target.role == UserRole.SUPERADMIN:
            raise Forbidden("Cannot delete a superadmin account.")

        email = target.email
        self.profiles.delete_profile(target_id)
        self.profiles.commit()
        logger.info(f"User {actor.id} deleted user {target_id}")

        self.audit.record(
            actor.id,
            "delete_user",
            target_id=target_id,
            details={"deleted_by": actor.id, "email": email},
        )

    def reset_password(
        self, actor: Profile, target_id: int, new_password: Optional[str] = None
    ) -> PasswordResetResult:
        """Set another user's password, generating one when none is given."""
        if actor.id == target_id:
            raise InvalidRequest(
                "Cannot reset your own password through admin panel. "
                "Use the normal password change flow."
            )
        target = self._get(target_id)

        generated = None
        if not new_password:
            new_password = generated = generate_temp_password()

        target.password_hash = get_password_hash(new_password)
        target.must_change_password = True
        target.failed_login_attempts = 0
        target.locked_until = None
        self.profiles.commit()

        self.audit.record(
            actor.id,
            "reset_password",
            target_id=target_id,
            details={"reset_by": UserRole(actor.role).value},
        )
        return PasswordResetResult(generated_password=generated)

    def _get(self, profile_id: int) -> Profile:
        profile = self.profiles.get_profile(profile_id)
        if profile is None:
            raise NotFound("Target user not found")
        return profile
