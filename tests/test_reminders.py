from datetime import datetime, timedelta
import json

import httpx
import pytest

from clinic.models.appointment import Appointment, AppointmentStatus
from clinic.models.patient import Patient
from clinic.services.reminder_service import ReminderService, reminder_message

NOW = datetime(2024, 5, 10, 8, 0)

class Gateway:
    """Records gateway calls; answers 500 for phones in ``failing``."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def __call__(self, request):
        body = json.loads(request.content)
        self.calls.append((request.headers.get("Authorization"), body))
        if body["target"] in self.failing:
            return httpx.Response(500, json={"status": False})
        return httpx.Response(200, json={"status": True})

@pytest.fixture
def schedule(db):
    with_phone = Patient(first_name="Putri", last_name="Ayu", phone="+62866666666")
    without_phone = Patient(first_name="Tono", last_name="Hadi", phone="")
    db.add_all([with_phone, without_phone])
    db.commit()

    def add(patient, offset, **fields):
        appointment = Appointment(patient_id=patient.id, appointment_date=NOW + offset, **fields)
        db.add(appointment)
        db.commit()
        return appointment

    return {
        "due": add(with_phone, timedelta(hours=3)),
        "no_phone": add(without_phone, timedelta(hours=5)),
        "already_reminded": add(with_phone, timedelta(hours=6), is_reminded=True),
        "cancelled": add(with_phone, timedelta(hours=7), status=AppointmentStatus.CANCELLED),
        "too_far": add(with_phone, timedelta(hours=30)),
        "past": add(with_phone, -timedelta(hours=1)),
    }

class TestReminders:

    def test_due_appointments(self, db, schedule):
        due = ReminderService(db).due_appointments(NOW)
        assert [a.id for a in due] == [schedule["due"].id, schedule["no_phone"].id]

    def test_send_due_reminders(self, db, schedule):
        gateway = Gateway()
        client = httpx.Client(transport=httpx.MockTransport(gateway))

        result = ReminderService(db, client=client).send_due_reminders(NOW)

        assert (result.sent, result.skipped, result.failed) == (1, 1, 0)
        assert len(gateway.calls) == 1
        _, body = gateway.calls[0]
        assert body["target"] == "+62866666666"
        assert "Putri" in body["message"]

        db.expire_all()
        assert db.get(Appointment, schedule["due"].id).is_reminded is True
        assert db.get(Appointment, schedule["no_phone"].id).is_reminded is False

        # A second run finds nothing left to send
        result = ReminderService(db, client=client).send_due_reminders(NOW)
        assert result.sent == 0
        assert len(gateway.calls) == 1

    def test_gateway_failure_is_counted_and_retried_later(self, db, schedule):
        client = httpx.Client(transport=httpx.MockTransport(Gateway(failing={"+62866666666"})))

        result = ReminderService(db, client=client).send_due_reminders(NOW)

        assert (result.sent, result.skipped, result.failed) == (0, 1, 1)
        db.expire_all()
        assert db.get(Appointment, schedule["due"].id).is_reminded is False

    def test_message_mentions_time(self):
        appointment = Appointment(
            appointment_date=datetime(2024, 5, 10, 11, 0),
            patient=Patient(first_name="Putri", last_name="Ayu", phone="1"),
        )
        assert reminder_message(appointment) == (
            "Hello Putri, this is a reminder of your appointment on Friday, 10 May 2024 11:00."
        )

class TestRemindersApi:

    def test_requires_superadmin(self, client, admin_headers):
        response = client.post("/api/v1/reminders/send", headers=admin_headers)
        assert response.status_code == 403

    def test_nothing_due(self, client, superadmin_headers):
        response = client.post("/api/v1/reminders/send", headers=superadmin_headers)
        assert response.status_code == 200
        assert response.json() == {"sent": 0, "skipped": 0, "failed": 0}
