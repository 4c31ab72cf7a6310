from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_staff_user
from ...models.appointment import AppointmentStatus
from ...models.profile import Profile
from ...schemas.appointment import (
    AppointmentCreate, AppointmentOccurrence, AppointmentResponse, AppointmentUpdate
)
from ...schemas.auth import MessageResponse
from ...services.appointment_service import AppointmentService, default_calendar_window

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """List stored appointments ordered by date."""
    return AppointmentService(db).list_appointments(status, start, end, skip, limit)

@router.get("/calendar", response_model=List[AppointmentOccurrence])
def calendar(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Calendar occurrences with ongoing treatments expanded.

    Defaults to the current and the next month.
    """
    default_start, default_end = default_calendar_window()
    return AppointmentService(db).calendar(start or default_start, end or default_end)

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return AppointmentService(db).create_appointment(data, current_user)

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return AppointmentService(db).get_appointment(appointment_id)

@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return AppointmentService(db).update_appointment(appointment_id, data)

@router.delete("/{appointment_id}", response_model=MessageResponse)
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Delete an appointment. Linked revenue entries are kept and unlinked."""
    AppointmentService(db).delete_appointment(appointment_id)
    return {"message": "Appointment deleted successfully"}
