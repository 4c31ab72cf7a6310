"""Appointment reminders sent through a WhatsApp messaging gateway."""
from datetime import datetime, timedelta
from typing import Optional
import logging

import httpx
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..models.appointment import Appointment, AppointmentStatus
from ..schemas.appointment import ReminderResult

logger = logging.getLogger(__name__)

def reminder_message(appointment: Appointment) -> str:
    name = appointment.patient.first_name if appointment.patient else None
    when = appointment.appointment_date.strftime("%A, %d %B %Y %H:%M")
    return f"Hello {name or 'there'}, this is a reminder of your appointment on {when}."

class ReminderService:
    def __init__(self, db: Session, client: Optional[httpx.Client] = None):
        self.db = db
        self.client = client

    def due_appointments(self, now: datetime):
        horizon = now + timedelta(hours=settings.REMINDER_LOOKAHEAD_HOURS)
        return (
            self.db.query(Appointment)
            .options(joinedload(Appointment.patient))
            .filter(
                Appointment.is_reminded.is_(False),
                Appointment.status != AppointmentStatus.CANCELLED,
                Appointment.appointment_date >= now,
                Appointment.appointment_date <= horizon,
            )
            .order_by(Appointment.appointment_date.asc())
            .all()
        )

    def send_due_reminders(self, now: Optional[datetime] = None) -> ReminderResult:
        """Send one reminder per upcoming appointment and mark it reminded.

        A failed send is logged and counted; the row stays unreminded so the
        next run retries it.
        """
        now = now or datetime.now()
        sent = skipped = failed = 0

        client = self.client or httpx.Client(timeout=settings.REMINDER_TIMEOUT_SECONDS)
        try:
            for appointment in self.due_appointments(now):
                phone = appointment.patient.phone if appointment.patient else None
                if not phone:
                    skipped += 1
                    continue

                try:
                    response = client.post(
                        settings.REMINDER_GATEWAY_URL,
                        headers={"Authorization": settings.REMINDER_GATEWAY_TOKEN or ""},
                        json={"target": phone, "message": reminder_message(appointment)},
                    )
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    logger.error(f"Failed to send reminder for appointment {appointment.id}: {exc}")
                    failed += 1
                    continue

                appointment.is_reminded = True
                self.db.commit()
                sent += 1
        finally:
            if self.client is None:
                client.close()

        logger.info(f"Reminders: {sent} sent, {skipped} skipped, {failed} failed")
        return ReminderResult(sent=sent, skipped=skipped, failed=failed)
