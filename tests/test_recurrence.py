from datetime import date, datetime
from decimal import Decimal

from clinic.models.appointment import Appointment, AppointmentStatus, Frequency, TreatmentType
from clinic.services.recurrence import MAX_GENERATED_OCCURRENCES, expand, occurrence_dates

WINDOW = (datetime(2024, 1, 1), datetime(2024, 12, 31, 23, 59))

def make_appointment(appointment_id=1, start=datetime(2024, 1, 1, 10, 30), **fields):
    values = dict(
        id=appointment_id,
        patient_id=7,
        appointment_date=start,
        duration_minutes=45,
        status=AppointmentStatus.SCHEDULED,
        cost=Decimal("150000"),
        treatment_type=TreatmentType.ONGOING,
        frequency=Frequency.DAILY,
        end_date=date(2024, 1, 5),
    )
    values.update(fields)
    return Appointment(**values)

def starts(occurrences):
    return [occurrence.start_at for occurrence in occurrences]

class TestExpand:

    def test_daily_series_stops_before_end_date(self):
        occurrences = expand([make_appointment()], *WINDOW)
        assert starts(occurrences) == [
            datetime(2024, 1, 1, 10, 30),
            datetime(2024, 1, 2, 10, 30),
            datetime(2024, 1, 3, 10, 30),
            datetime(2024, 1, 4, 10, 30),
        ]

    def test_daily_series_over_three_days(self):
        appointment = make_appointment(start=datetime(2024, 1, 1, 9, 0), end_date=date(2024, 1, 4))
        assert starts(expand([appointment], *WINDOW)) == [
            datetime(2024, 1, 1, 9, 0),
            datetime(2024, 1, 2, 9, 0),
            datetime(2024, 1, 3, 9, 0),
        ]

    def test_weekly_series_excludes_end_date(self):
        appointment = make_appointment(frequency=Frequency.WEEKLY, end_date=date(2024, 1, 29))
        assert starts(expand([appointment], *WINDOW)) == [
            datetime(2024, 1, 1, 10, 30),
            datetime(2024, 1, 8, 10, 30),
            datetime(2024, 1, 15, 10, 30),
            datetime(2024, 1, 22, 10, 30),
        ]

    def test_weekly_series_over_a_year(self):
        appointment = make_appointment(
            start=datetime(2024, 1, 1, 9, 0),
            frequency=Frequency.WEEKLY,
            end_date=date(2025, 1, 1),
        )
        occurrences = expand([appointment], *WINDOW)
        assert len(occurrences) == 53
        assert occurrences[1].start_at == datetime(2024, 1, 8, 9, 0)
        assert occurrences[-1].start_at == datetime(2024, 12, 30, 9, 0)
        assert all(o.start_at.weekday() == 0 for o in occurrences)
        assert len({o.occurrence_id for o in occurrences}) == 53

    def test_monthly_series_clamps_to_short_months(self):
        appointment = make_appointment(
            start=datetime(2024, 1, 31, 9, 0),
            frequency=Frequency.MONTHLY,
            end_date=date(2024, 5, 1),
        )
        assert starts(expand([appointment], *WINDOW)) == [
            datetime(2024, 1, 31, 9, 0),
            datetime(2024, 2, 29, 9, 0),
            datetime(2024, 3, 29, 9, 0),
            datetime(2024, 4, 29, 9, 0),
        ]

    def test_yearly_series(self):
        appointment = make_appointment(
            start=datetime(2024, 3, 15, 8, 0),
            frequency=Frequency.YEARLY,
            end_date=date(2027, 3, 16),
        )
        assert starts(expand([appointment], *WINDOW)) == [
            datetime(2024, 3, 15, 8, 0),
            datetime(2025, 3, 15, 8, 0),
            datetime(2026, 3, 15, 8, 0),
            datetime(2027, 3, 15, 8, 0),
        ]

    def test_time_of_day_does_not_affect_end_comparison(self):
        appointment = make_appointment(start=datetime(2024, 1, 1, 23, 45), end_date=date(2024, 1, 3))
        assert starts(expand([appointment], *WINDOW)) == [
            datetime(2024, 1, 1, 23, 45),
            datetime(2024, 1, 2, 23, 45),
        ]

    def test_end_date_on_anchor_day_yields_only_anchor(self):
        appointment = make_appointment(end_date=date(2024, 1, 1))
        assert starts(expand([appointment], *WINDOW)) == [datetime(2024, 1, 1, 10, 30)]

    def test_end_date_before_anchor_yields_only_anchor(self):
        appointment = make_appointment(end_date=date(2023, 12, 1))
        assert len(expand([appointment], *WINDOW)) == 1

    def test_generation_is_capped(self):
        appointment = make_appointment(end_date=date(2034, 1, 1))
        occurrences = expand([appointment], *WINDOW)
        assert len(occurrences) == 1 + MAX_GENERATED_OCCURRENCES
        assert occurrences[-1].start_at == datetime(2024, 4, 10, 10, 30)

    def test_one_time_appointment_is_not_expanded(self):
        appointment = make_appointment(treatment_type=TreatmentType.ONE_TIME)
        assert len(expand([appointment], *WINDOW)) == 1

    def test_ongoing_without_frequency_or_end_date(self):
        appointments = [
            make_appointment(1, frequency=None),
            make_appointment(2, end_date=None),
        ]
        assert [o.source_id for o in expand(appointments, *WINDOW)] == [1, 2]

    def test_unknown_frequency_yields_only_anchor(self):
        appointment = make_appointment(frequency="fortnightly")
        occurrences = expand([appointment], *WINDOW)
        assert len(occurrences) == 1
        assert occurrences[0].frequency == "fortnightly"

    def test_anchor_outside_window_is_still_emitted(self):
        appointment = make_appointment(
            start=datetime(2023, 6, 1, 10, 0), treatment_type=TreatmentType.ONE_TIME
        )
        assert starts(expand([appointment], *WINDOW)) == [datetime(2023, 6, 1, 10, 0)]

    def test_inverted_window_returns_nothing(self):
        assert expand([make_appointment()], WINDOW[1], WINDOW[0]) == []

    def test_empty_input(self):
        assert expand([], *WINDOW) == []

    def test_occurrence_ids_are_distinct_and_anchor_keeps_source_id(self):
        occurrences = expand([make_appointment(1), make_appointment(2)], *WINDOW)
        ids = [occurrence.occurrence_id for occurrence in occurrences]
        assert len(ids) == len(set(ids))
        assert "1" in ids and "2" in ids
        assert "1-20240102T103000" in ids

    def test_occurrences_copy_source_fields(self):
        occurrences = expand([make_appointment(notes="Physio")], *WINDOW)
        for occurrence in occurrences:
            assert occurrence.source_id == 1
            assert occurrence.patient_id == 7
            assert occurrence.duration_minutes == 45
            assert occurrence.cost == Decimal("150000")
            assert occurrence.notes == "Physio"
            assert occurrence.frequency == "daily"

class TestOccurrenceDates:

    def test_accepts_plain_frequency_strings(self):
        assert occurrence_dates(datetime(2024, 1, 1), "weekly", date(2024, 1, 10)) == [
            datetime(2024, 1, 8)
        ]

    def test_missing_parts_yield_nothing(self):
        assert occurrence_dates(datetime(2024, 1, 1), None, date(2024, 2, 1)) == []
        assert occurrence_dates(datetime(2024, 1, 1), "daily", None) == []
