from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.security import UserRole
from .auth import ProfileResponse

class InviteUserRequest(BaseModel):
    email: EmailStr
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

class InviteUserResponse(BaseModel):
    user: ProfileResponse
    temporary_password: str
    message: str

class RoleChangeRequest(BaseModel):
    target_user_id: int
    new_role: UserRole

class RoleChangeResponse(BaseModel):
    outcome: Literal["updated", "transferred"]
    target_user_id: int
    previous_role: UserRole
    new_role: UserRole
    demoted_user_id: Optional[int] = None
    message: str

class ApprovalUpdate(BaseModel):
    approved: bool

class AdminPasswordReset(BaseModel):
    new_password: Optional[str] = Field(default=None, min_length=8)

class AdminPasswordResetResponse(BaseModel):
    message: str
    generated_password: Optional[str] = None
    requires_password_change: bool = True

class UserListResponse(BaseModel):
    users: List[ProfileResponse]
    superadmin_count: int
    superadmin_cap: int

class AuditLogCreate(BaseModel):
    action: str = Field(min_length=1, max_length=50)
    target_user_id: int
    previous_role: Optional[UserRole] = None
    new_role: Optional[UserRole] = None

class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int
    action: str
    target_id: Optional[int] = None
    previous_role: Optional[str] = None
    new_role: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None
