from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from clinic.models.appointment import Appointment, AppointmentStatus
from clinic.models.patient import Patient
from clinic.models.revenue import PaymentMethod, Revenue, RevenueStatus
from clinic.services.revenue_service import summarize

TODAY = date(2024, 3, 31)

def revenue(amount, status, method, day):
    return Revenue(
        amount=Decimal(amount), status=status, payment_method=method,
        transaction_date=datetime.combine(day, datetime.min.time()) + timedelta(hours=10)
    )

def appointment(cost, status):
    return Appointment(cost=Decimal(cost), status=status, appointment_date=datetime(2024, 3, 1, 9))

@pytest.fixture
def sample():
    revenues = [
        revenue("100", RevenueStatus.COMPLETED, PaymentMethod.CASH, TODAY),
        revenue("50", RevenueStatus.PENDING, PaymentMethod.TRANSFER, TODAY - timedelta(days=3)),
        revenue("20", RevenueStatus.CANCELLED, PaymentMethod.CARD, TODAY - timedelta(days=40)),
    ]
    appointments = [
        appointment("200", AppointmentStatus.COMPLETED),
        appointment("300", AppointmentStatus.SCHEDULED),
        appointment("400", AppointmentStatus.CANCELLED),
    ]
    return revenues, appointments

class TestSummarize:

    def test_totals(self, sample):
        summary = summarize(*sample, today=TODAY)

        assert summary.total == Decimal("370")
        assert summary.completed == Decimal("300")
        assert summary.pending == Decimal("50")
        assert summary.estimated == Decimal("600")

    def test_by_payment_method(self, sample):
        summary = summarize(*sample, today=TODAY)
        assert summary.by_payment_method == {
            "cash": Decimal("100"), "transfer": Decimal("50"), "card": Decimal("20")
        }

    def test_daily_chart_covers_last_thirty_days(self, sample):
        summary = summarize(*sample, today=TODAY)
        assert [(d.day, d.amount) for d in summary.daily] == [
            (date(2024, 3, 28), Decimal("50")),
            (date(2024, 3, 31), Decimal("100")),
        ]

    def test_empty(self):
        summary = summarize([], [], today=TODAY)
        assert summary.total == 0
        assert summary.daily == []
        assert summary.by_payment_method == {}

@pytest.fixture
def patient(db):
    patient = Patient(first_name="Rina", last_name="Wati", phone="+62833333333")
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient

class TestRevenueApi:

    def test_crud(self, client, admin_headers):
        response = client.post(
            "/api/v1/revenue",
            json={"amount": "125000", "payment_method": "transfer", "transaction_date": "2024-03-01T10:00:00"},
            headers=admin_headers
        )
        assert response.status_code == 201
        entry = response.json()
        assert entry["status"] == "completed"

        response = client.patch(
            f"/api/v1/revenue/{entry['id']}", json={"status": "pending"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "pending"

        response = client.get("/api/v1/revenue?status=pending", headers=admin_headers)
        assert [r["id"] for r in response.json()] == [entry["id"]]

        response = client.delete(f"/api/v1/revenue/{entry['id']}", headers=admin_headers)
        assert response.status_code == 200
        response = client.get(f"/api/v1/revenue/{entry['id']}", headers=admin_headers)
        assert response.status_code == 404

    def test_amount_must_be_positive(self, client, admin_headers):
        response = client.post(
            "/api/v1/revenue",
            json={"amount": "0", "transaction_date": "2024-03-01T10:00:00"},
            headers=admin_headers
        )
        assert response.status_code == 422

    def test_unknown_appointment(self, client, admin_headers):
        response = client.post(
            "/api/v1/revenue",
            json={"amount": "10", "transaction_date": "2024-03-01T10:00:00", "appointment_id": 999},
            headers=admin_headers
        )
        assert response.status_code == 404

    def test_summary_endpoint(self, client, db, patient, admin_headers):
        db.add_all([
            Appointment(patient_id=patient.id, appointment_date=datetime(2024, 3, 1, 9),
                        cost=Decimal("200"), status=AppointmentStatus.COMPLETED),
            Revenue(amount=Decimal("75"), status=RevenueStatus.PENDING,
                    transaction_date=datetime.now()),
        ])
        db.commit()

        response = client.get("/api/v1/revenue/summary", headers=admin_headers)
        assert response.status_code == 200

        data = response.json()
        assert Decimal(data["total"]) == Decimal("275")
        assert Decimal(data["completed"]) == Decimal("200")
        assert Decimal(data["pending"]) == Decimal("75")
        assert len(data["daily"]) == 1

class TestDashboard:

    def test_dashboard(self, client, db, patient, admin_headers):
        now = datetime.now()
        db.add_all([
            Appointment(patient_id=patient.id, appointment_date=now - timedelta(days=2),
                        cost=Decimal("100"), status=AppointmentStatus.COMPLETED),
            Appointment(patient_id=patient.id, appointment_date=now + timedelta(days=1),
                        cost=Decimal("300"), status=AppointmentStatus.SCHEDULED),
            Appointment(patient_id=patient.id, appointment_date=now + timedelta(days=2),
                        cost=Decimal("500"), status=AppointmentStatus.CANCELLED),
            Revenue(amount=Decimal("40"), status=RevenueStatus.COMPLETED, transaction_date=now),
        ])
        db.commit()

        response = client.get("/api/v1/dashboard", headers=admin_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["patient_count"] == 1
        assert data["appointment_count"] == 3
        assert Decimal(data["total_revenue"]) == Decimal("140")
        assert Decimal(data["expected_revenue"]) == Decimal("400")
        assert len(data["upcoming_appointments"]) == 1
        assert data["upcoming_appointments"][0]["patient"]["first_name"] == "Rina"
