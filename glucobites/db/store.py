"""
Health Data Store

SQLAlchemy Core access to patients, thresholds, logged data, report
preferences and the report audit log. Every public method uses its own
connection from the engine pool; writes run inside a transaction.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, MetaData, String, Table,
    create_engine, func, insert, select, update
)
from sqlalchemy.engine import Engine

from glucobites.core.reports.records import (
    Category, LogRecord, PatientRecord, ReportFrequency, ThresholdProfile
)
from glucobites.utils import get_logger

logger = get_logger(__name__)

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("email", String(255)),
    Column("weight", Float),
    Column("height", Float),
    Column("gender", String(20)),
    Column("diabetes", Integer),
    Column("is_insulin", Boolean),
    Column("questions_asked_this_week", Integer, nullable=False, default=0),
)

user_thresholds = Table(
    "user_thresholds", metadata,
    Column("user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
    Column("low_threshold", Float),
    Column("high_fasting_threshold", Float),
    Column("high_post_meal_threshold", Float),
    Column("very_high_threshold", Float),
    Column("automated_report_frequency", String(20), nullable=False, default=ReportFrequency.DISABLED.value),
    Column("preferred_provider_name", String(200)),
    Column("preferred_provider_email", String(255)),
)

data_logs = Table(
    "data_logs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False, index=True),
    Column("type", Integer, nullable=False),  # 1 calorie, 2 sugar, 3 glucose
    Column("amount", Float, nullable=False),
    Column("date", DateTime, nullable=False),
    Column("tag", String(50)),
    Column("food_name", String(200)),
)

report_logs = Table(
    "report_logs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("action_type", String(10), nullable=False),  # 'email' or 'export'
    Column("recipient_email", String(255)),
    Column("recipient_name", String(200)),
    Column("start_date", DateTime, nullable=False),
    Column("end_date", DateTime, nullable=False),
    Column("sections", String(255)),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)


@dataclass(frozen=True)
class ScheduledRecipient:
    """A user opted in to automated reports, with their provider's contact."""
    user_id: int
    provider_email: str
    provider_name: Optional[str] = None


@dataclass(frozen=True)
class AuditEntry:
    """One report_logs row."""
    user_id: int
    action_type: str
    start_date: datetime
    end_date: datetime
    sections: List[str]
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None


class HealthDataStore:
    """Data access for the report pipeline."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "HealthDataStore":
        return cls(create_engine(database_url, pool_pre_ping=True))

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    # ---- Report inputs ----

    def get_patient(self, user_id: int) -> Optional[PatientRecord]:
        stmt = select(
            users.c.first_name, users.c.last_name, users.c.weight, users.c.height,
            users.c.gender, users.c.diabetes, users.c.is_insulin,
        ).where(users.c.user_id == user_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None
        return PatientRecord(
            user_id=user_id,
            first_name=row.first_name,
            last_name=row.last_name,
            weight=row.weight,
            height=row.height,
            gender=row.gender,
            diabetes_type=row.diabetes,
            uses_insulin=bool(row.is_insulin) if row.is_insulin is not None else None,
        )

    def get_thresholds(self, user_id: int) -> Optional[ThresholdProfile]:
        stmt = select(
            user_thresholds.c.low_threshold,
            user_thresholds.c.high_fasting_threshold,
            user_thresholds.c.high_post_meal_threshold,
            user_thresholds.c.very_high_threshold,
        ).where(user_thresholds.c.user_id == user_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None
        return ThresholdProfile(
            low=row.low_threshold,
            high_fasting=row.high_fasting_threshold,
            high_post_meal=row.high_post_meal_threshold,
            very_high=row.very_high_threshold,
        )

    def get_logs(
        self,
        user_id: int,
        start_date: datetime,
        end_date: datetime,
        categories: Optional[Iterable[Category]] = None,
    ) -> List[LogRecord]:
        """Logs in [start_date, end_date], newest first."""
        codes = [c.type_code for c in (categories or list(Category))]
        stmt = (
            select(data_logs.c.type, data_logs.c.amount, data_logs.c.date, data_logs.c.tag, data_logs.c.food_name)
            .where(data_logs.c.user_id == user_id)
            .where(data_logs.c.type.in_(codes))
            .where(data_logs.c.date.between(start_date, end_date))
            .order_by(data_logs.c.date.desc(), data_logs.c.id.desc())
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            LogRecord(
                category=Category.from_type_code(r.type),
                amount=r.amount,
                timestamp=r.date,
                tag=r.tag,
                label=r.food_name,
            )
            for r in rows
        ]

    # ---- Scheduling & preferences ----

    def get_scheduled_recipients(self, frequency: ReportFrequency) -> List[ScheduledRecipient]:
        stmt = (
            select(
                users.c.user_id,
                user_thresholds.c.preferred_provider_name,
                user_thresholds.c.preferred_provider_email,
            )
            .select_from(users.join(user_thresholds, users.c.user_id == user_thresholds.c.user_id))
            .where(user_thresholds.c.automated_report_frequency == frequency.value)
            .where(user_thresholds.c.preferred_provider_email.is_not(None))
            .order_by(users.c.user_id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            ScheduledRecipient(
                user_id=r.user_id,
                provider_email=r.preferred_provider_email,
                provider_name=r.preferred_provider_name,
            )
            for r in rows
        ]

    def get_report_frequency(self, user_id: int) -> ReportFrequency:
        stmt = select(user_thresholds.c.automated_report_frequency).where(user_thresholds.c.user_id == user_id)
        with self.engine.connect() as conn:
            value = conn.execute(stmt).scalar_one_or_none()
        return ReportFrequency(value) if value else ReportFrequency.DISABLED

    def set_report_frequency(self, user_id: int, frequency: ReportFrequency) -> None:
        with self.engine.begin() as conn:
            exists = conn.execute(
                select(user_thresholds.c.user_id).where(user_thresholds.c.user_id == user_id)
            ).first()
            if exists:
                conn.execute(
                    update(user_thresholds)
                    .where(user_thresholds.c.user_id == user_id)
                    .values(automated_report_frequency=frequency.value)
                )
            else:
                conn.execute(
                    insert(user_thresholds).values(user_id=user_id, automated_report_frequency=frequency.value)
                )
        logger.info(f"Report preference for user {user_id} set to {frequency.value}")

    def reset_weekly_question_counts(self) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(update(users).values(questions_asked_this_week=0))
        return result.rowcount

    # ---- Audit ----

    def record_report_action(self, entry: AuditEntry) -> None:
        with self.engine.begin() as conn:
            conn.execute(insert(report_logs).values(
                user_id=entry.user_id,
                action_type=entry.action_type,
                recipient_email=entry.recipient_email,
                recipient_name=entry.recipient_name,
                start_date=entry.start_date,
                end_date=entry.end_date,
                sections=",".join(entry.sections),
            ))

    def list_report_actions(self, user_id: int) -> List[AuditEntry]:
        stmt = select(report_logs).where(report_logs.c.user_id == user_id).order_by(report_logs.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            AuditEntry(
                user_id=r.user_id,
                action_type=r.action_type,
                start_date=r.start_date,
                end_date=r.end_date,
                sections=[s for s in (r.sections or "").split(",") if s],
                recipient_email=r.recipient_email,
                recipient_name=r.recipient_name,
            )
            for r in rows
        ]
