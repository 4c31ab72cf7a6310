from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_staff_user, get_superadmin
from ...models.profile import Profile
from ...repositories.audit import AuditStore
from ...schemas.auth import MessageResponse, ProfileResponse
from ...schemas.user import (
    AdminPasswordReset, AdminPasswordResetResponse, ApprovalUpdate,
    AuditLogCreate, AuditLogResponse, InviteUserRequest, InviteUserResponse,
    RoleChangeRequest, RoleChangeResponse, UserListResponse
)
from ...services.role_service import SUPERADMIN_CAP
from ...services.user_admin_service import UserAdminService

router = APIRouter(prefix="/admin", tags=["User Management"])

@router.get("/users", response_model=UserListResponse)
def list_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """List all users, optionally filtered by role (superadmin only)."""
    service = UserAdminService(db)
    return UserListResponse(
        users=[ProfileResponse.model_validate(p) for p in service.list_users(role)],
        superadmin_count=service.superadmin_count(),
        superadmin_cap=SUPERADMIN_CAP,
    )

@router.post("/users/invite", response_model=InviteUserResponse, status_code=status.HTTP_201_CREATED)
def invite_user(
    invite: InviteUserRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Invite a new admin with a temporary password (superadmin only)."""
    invited = UserAdminService(db).invite_user(current_user, invite)
    return InviteUserResponse(
        user=ProfileResponse.model_validate(invited.profile),
        temporary_password=invited.temporary_password,
        message="Admin invited successfully. Share the temporary password; it must be changed after first login.",
    )

@router.put("/users/role", response_model=RoleChangeResponse)
def update_role(
    change: RoleChangeRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Change a user's role, transferring the caller's superadmin slot when the cap is reached."""
    result = UserAdminService(db).change_role(current_user, change.target_user_id, change.new_role)
    return RoleChangeResponse(
        outcome=result.outcome,
        target_user_id=result.target_id,
        previous_role=result.previous_role,
        new_role=result.new_role,
        demoted_user_id=getattr(result, "demoted_id", None),
        message=result.message,
    )

@router.patch("/users/{user_id}/approval", response_model=ProfileResponse)
def update_approval(
    user_id: int,
    approval: ApprovalUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Approve or revoke a user's access (superadmin only)."""
    profile = UserAdminService(db).set_approval(current_user, user_id, approval.approved)
    return ProfileResponse.model_validate(profile)

@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Delete an admin account (superadmin only). Superadmins cannot be deleted."""
    UserAdminService(db).delete_user(current_user, user_id)
    return {"message": "User deleted successfully"}

@router.post("/users/{user_id}/reset-password", response_model=AdminPasswordResetResponse)
def reset_user_password(
    user_id: int,
    reset: AdminPasswordReset,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Set another user's password, generating one when none is given."""
    result = UserAdminService(db).reset_password(current_user, user_id, reset.new_password)
    return AdminPasswordResetResponse(
        message="Password reset successfully",
        generated_password=result.generated_password,
    )

@router.get("/audit", response_model=List[AuditLogResponse])
def list_audit_log(
    action: Optional[str] = None,
    target_user_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Browse the admin audit log (superadmin only)."""
    entries = AuditStore(db).list_entries(action, target_user_id, skip, min(limit, 500))
    return [AuditLogResponse.model_validate(entry) for entry in entries]

@router.post("/audit", response_model=AuditLogResponse, status_code=status.HTTP_201_CREATED)
def create_audit_entry(
    entry: AuditLogCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Record an admin action. Unlike the internal audit writes, failure here is an error."""
    created = AuditStore(db).append(
        current_user.id,
        entry.action,
        target_id=entry.target_user_id,
        previous_role=entry.previous_role.value if entry.previous_role else None,
        new_role=entry.new_role.value if entry.new_role else None,
        details={"changed_by": current_user.id},
    )
    return AuditLogResponse.model_validate(created)
