from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import InvalidRequest, NotFound
from ..models.appointment import Appointment, AppointmentStatus, TreatmentType
from ..models.patient import Patient
from ..models.profile import Profile
from ..schemas.appointment import (
    AppointmentCreate, AppointmentOccurrence, AppointmentUpdate, local_naive
)
from .recurrence import expand
from .revenue_service import detach_revenue

def default_calendar_window(today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """First day of the current month through the last day of the next one."""
    today = today or date.today()
    first = today.replace(day=1)
    last = first + relativedelta(months=2) - timedelta(days=1)
    return datetime.combine(first, time.min), datetime.combine(last, time.max)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(joinedload(Appointment.patient))

    def list_appointments(
        self,
        status: Optional[AppointmentStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Appointment]:
        query = self._query()
        start, end = local_naive(start), local_naive(end)
        if status is not None:
            query = query.filter(Appointment.status == status)
        if start is not None:
            query = query.filter(Appointment.appointment_date >= start)
        if end is not None:
            query = query.filter(Appointment.appointment_date <= end)
        return query.order_by(Appointment.appointment_date.asc()).offset(skip).limit(limit).all()

    def list_in_window(self, window_start: datetime, window_end: datetime) -> List[Appointment]:
        """Appointments dated inside the window, plus ongoing series that
        started earlier and have not ended before it."""
        return (
            self._query()
            .filter(
                Appointment.appointment_date <= window_end,
                or_(
                    Appointment.appointment_date >= window_start,
                    and_(
                        Appointment.treatment_type == TreatmentType.ONGOING,
                        Appointment.end_date > window_start.date(),
                    ),
                ),
            )
            .order_by(Appointment.appointment_date.asc())
            .all()
        )

    def calendar(self, window_start: datetime, window_end: datetime) -> List[AppointmentOccurrence]:
        window_start, window_end = local_naive(window_start), local_naive(window_end)
        if window_start > window_end:
            raise InvalidRequest("Calendar window start must not be after its end")
        occurrences = expand(self.list_in_window(window_start, window_end), window_start, window_end)
        return sorted(occurrences, key=lambda occurrence: occurrence.start_at)

    def upcoming(self, limit: int = 10, now: Optional[datetime] = None) -> List[Appointment]:
        now = now or datetime.now()
        return (
            self._query()
            .filter(
                Appointment.appointment_date >= now,
                Appointment.status != AppointmentStatus.CANCELLED,
            )
            .order_by(Appointment.appointment_date.asc())
            .limit(limit)
            .all()
        )

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self._query().filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise NotFound("Appointment not found")
        return appointment

    def create_appointment(self, data: AppointmentCreate, created_by: Profile) -> Appointment:
        self._require_patient(data.patient_id)
        appointment = Appointment(**data.model_dump(), created_by=created_by.id)
        self.db.add(appointment)
        self.db.commit()
        return self.get_appointment(appointment.id)

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        changes = data.model_dump(exclude_unset=True)
        if "patient_id" in changes:
            self._require_patient(changes["patient_id"])

        # Validate the merged record with the same rules as creation
        current = {
            field: getattr(appointment, field)
            for field in AppointmentCreate.model_fields
        }
        try:
            merged = AppointmentCreate(**{**current, **changes})
        except ValidationError as exc:
            raise InvalidRequest(exc.errors()[0]["msg"]) from exc

        for field, value in merged.model_dump().items():
            setattr(appointment, field, value)
        if "appointment_date" in changes:
            appointment.is_reminded = False
        self.db.commit()
        return self.get_appointment(appointment_id)

    def delete_appointment(self, appointment_id: int) -> None:
        appointment = self.get_appointment(appointment_id)
        detach_revenue(self.db, [appointment.id])
        self.db.delete(appointment)
        self.db.commit()

    def _require_patient(self, patient_id: int) -> None:
        if self.db.get(Patient, patient_id) is None:
            raise NotFound("Patient not found")
