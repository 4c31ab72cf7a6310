from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import AuthorizationError, UserRole
from ...api.deps import get_staff_user, get_superadmin
from ...models.profile import Profile
from ...schemas.appointment import ReminderResult
from ...schemas.export import ExportRequest
from ...services.export_service import XLSX_MEDIA_TYPE, ExportService
from ...services.reminder_service import ReminderService

router = APIRouter(tags=["Export"])

@router.post("/export")
def export_data(
    request: ExportRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Download patients, appointments and/or users as an .xlsx workbook.

    Exporting users requires the superadmin role.
    """
    if request.entity in ("users", "all") and current_user.role != UserRole.SUPERADMIN:
        raise AuthorizationError("Only superadmins can export users")

    content, file_name = ExportService(db).export(request)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )

@router.post("/reminders/send", response_model=ReminderResult, tags=["Reminders"])
def send_reminders(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_superadmin)
):
    """Send reminders for appointments starting within the lookahead window."""
    return ReminderService(db).send_due_reminders()
