"""
Unit Tests for the Health Data Store
"""
from datetime import datetime

from glucobites.core.reports.records import Category, ReportFrequency
from glucobites.db.store import AuditEntry, users
from sqlalchemy import select

MARCH_START = datetime(2025, 3, 1)
MARCH_END = datetime(2025, 3, 31, 23, 59, 59)


class TestReportInputs:
    """Tests for patient, threshold and log queries."""

    def test_get_patient(self, seeded_store):
        patient = seeded_store.get_patient(1)
        assert patient.display_name == "Jane Doe"
        assert patient.diabetes_type == 1
        assert patient.uses_insulin is True
        assert patient.weight == 68.5

    def test_missing_patient(self, seeded_store):
        assert seeded_store.get_patient(999) is None

    def test_thresholds(self, seeded_store):
        profile = seeded_store.get_thresholds(1)
        assert (profile.low, profile.high_fasting, profile.high_post_meal, profile.very_high) == (70, 130, 180, 250)
        assert seeded_store.get_thresholds(999) is None

    def test_logs_newest_first_within_window(self, seeded_store):
        logs = seeded_store.get_logs(1, MARCH_START, MARCH_END)
        assert len(logs) == 5
        timestamps = [r.timestamp for r in logs]
        assert timestamps == sorted(timestamps, reverse=True)
        assert all(MARCH_START <= t <= MARCH_END for t in timestamps)

    def test_logs_filtered_by_category(self, seeded_store):
        logs = seeded_store.get_logs(1, MARCH_START, MARCH_END, [Category.GLUCOSE])
        assert [r.category for r in logs] == [Category.GLUCOSE] * 3
        assert [r.amount for r in logs] == [190.0, 120.0, 95.0]

    def test_log_fields(self, seeded_store):
        calorie = seeded_store.get_logs(1, MARCH_START, MARCH_END, [Category.CALORIE])[0]
        assert calorie.label == "Pasta"
        sugar = seeded_store.get_logs(1, MARCH_START, MARCH_END, [Category.SUGAR])[0]
        assert sugar.label is None


class TestPreferences:
    """Tests for scheduling preferences."""

    def test_scheduled_recipients_need_provider_email(self, seeded_store):
        weekly = seeded_store.get_scheduled_recipients(ReportFrequency.WEEKLY)
        assert [r.user_id for r in weekly] == [1]
        assert weekly[0].provider_email == "smith@clinic.example"
        assert weekly[0].provider_name == "Dr. Smith"

        monthly = seeded_store.get_scheduled_recipients(ReportFrequency.MONTHLY)
        assert [r.user_id for r in monthly] == [2]
        assert monthly[0].provider_name is None

    def test_frequency_defaults_to_disabled(self, store):
        assert store.get_report_frequency(42) == ReportFrequency.DISABLED

    def test_set_frequency_inserts_then_updates(self, seeded_store):
        seeded_store.set_report_frequency(3, ReportFrequency.MONTHLY)
        assert seeded_store.get_report_frequency(3) == ReportFrequency.MONTHLY
        seeded_store.set_report_frequency(1, ReportFrequency.DISABLED)
        assert seeded_store.get_report_frequency(1) == ReportFrequency.DISABLED
        assert seeded_store.get_scheduled_recipients(ReportFrequency.WEEKLY) == []

    def test_set_frequency_creates_row(self, store):
        store.set_report_frequency(5, ReportFrequency.WEEKLY)
        assert store.get_report_frequency(5) == ReportFrequency.WEEKLY

    def test_reset_question_counts(self, seeded_store):
        assert seeded_store.reset_weekly_question_counts() == 3
        with seeded_store.engine.connect() as conn:
            counts = conn.execute(select(users.c.questions_asked_this_week)).scalars().all()
        assert counts == [0, 0, 0]


class TestAudit:
    """Tests for the report audit log."""

    def test_record_and_list(self, seeded_store):
        seeded_store.record_report_action(AuditEntry(
            user_id=1, action_type="export", start_date=MARCH_START, end_date=MARCH_END, sections=["Glucose"],
        ))
        seeded_store.record_report_action(AuditEntry(
            user_id=1, action_type="email", start_date=MARCH_START, end_date=MARCH_END,
            sections=["Glucose", "Calorie"], recipient_email="smith@clinic.example", recipient_name="Dr. Smith",
        ))

        entries = seeded_store.list_report_actions(1)
        assert [e.action_type for e in entries] == ["export", "email"]
        assert entries[1].sections == ["Glucose", "Calorie"]
        assert entries[1].recipient_email == "smith@clinic.example"
        assert entries[0].recipient_email is None
        assert seeded_store.list_report_actions(2) == []
