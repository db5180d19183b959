"""
Automated Report Scheduler

Background cron jobs started once per process:
- weekly provider reports (trailing 7 days)
- monthly provider reports (full previous calendar month)
- weekly reset of the Q&A question allowance
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
from typing import Any, Dict, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from glucobites.config import Settings
from glucobites.core.reports.records import ReportFrequency
from glucobites.db.store import HealthDataStore
from glucobites.services.report_service import ReportService
from glucobites.utils import get_logger

logger = get_logger(__name__)

WEEKLY_JOB_ID = "weekly_report_job"
MONTHLY_JOB_ID = "monthly_report_job"
QUESTION_RESET_JOB_ID = "weekly_question_reset_job"


def report_window(frequency: ReportFrequency, now: datetime) -> Tuple[datetime, datetime]:
    """
    Date range covered by an automated report fired at `now`.

    Weekly: the 7 days ending at `now`.
    Monthly: the whole previous calendar month, 00:00:00 on its first day
    through 23:59:59 on its last day.
    """
    if frequency == ReportFrequency.WEEKLY:
        return now - timedelta(days=7), now
    if frequency == ReportFrequency.MONTHLY:
        first_of_this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        last_day = first_of_this_month - timedelta(days=1)
        start = last_day.replace(day=1)
        end = last_day.replace(hour=23, minute=59, second=59)
        return start, end
    raise ValueError(f"No report window for frequency: {frequency.value}")


@dataclass
class SchedulerRunSummary:
    """Outcome of one scheduled report run."""
    frequency: ReportFrequency
    window: Tuple[datetime, datetime]
    sent: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frequency": self.frequency.value,
            "start_date": self.window[0].isoformat(),
            "end_date": self.window[1].isoformat(),
            "sent": len(self.sent),
            "failed": len(self.failed),
        }


class ReportScheduler:
    """
    Owns the APScheduler instance and the job bodies.

    Users are processed one after another; a failure for one user is
    logged and the run moves on to the next.
    """

    def __init__(self, store: HealthDataStore, report_service: ReportService, settings: Settings):
        self.store = store
        self.report_service = report_service
        self.settings = settings
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        s = self.settings
        scheduler = BackgroundScheduler(timezone=s.scheduler_timezone)
        scheduler.add_job(
            self.run_reports,
            CronTrigger(day_of_week=s.weekly_report_day_of_week, hour=s.weekly_report_hour, minute=0,
                        timezone=s.scheduler_timezone),
            args=[ReportFrequency.WEEKLY],
            id=WEEKLY_JOB_ID,
            replace_existing=True,
        )
        scheduler.add_job(
            self.run_reports,
            CronTrigger(day=s.monthly_report_day, hour=s.monthly_report_hour, minute=0,
                        timezone=s.scheduler_timezone),
            args=[ReportFrequency.MONTHLY],
            id=MONTHLY_JOB_ID,
            replace_existing=True,
        )
        scheduler.add_job(
            self.reset_question_limits,
            CronTrigger(day_of_week=s.question_reset_day_of_week, hour=s.question_reset_hour, minute=0,
                        timezone=s.scheduler_timezone),
            id=QUESTION_RESET_JOB_ID,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Automated task scheduler has been started.")

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Automated task scheduler stopped.")
        self._scheduler = None

    def job_ids(self) -> List[str]:
        if self._scheduler is None:
            return []
        return [job.id for job in self._scheduler.get_jobs()]

    def current_time(self) -> datetime:
        """Wall-clock time in the timezone the cron triggers fire in, without tzinfo."""
        return datetime.now(ZoneInfo(self.settings.scheduler_timezone)).replace(tzinfo=None)

    def run_reports(self, frequency: ReportFrequency, now: Optional[datetime] = None) -> SchedulerRunSummary:
        """Email the report for every user opted in to this frequency."""
        now = now or self.current_time()
        start_date, end_date = report_window(frequency, now)
        summary = SchedulerRunSummary(frequency=frequency, window=(start_date, end_date))
        logger.info(f"Running {frequency.value.lower()} report job...")

        recipients = self.store.get_scheduled_recipients(frequency)
        if not recipients:
            logger.info(f"No {frequency.value.lower()} reports to send.")
            return summary
        logger.info(f"Found {len(recipients)} user(s) for {frequency.value.lower()} reports.")

        for recipient in recipients:
            try:
                self.report_service.send_automated_report(
                    recipient.user_id, start_date, end_date,
                    recipient.provider_email, recipient.provider_name,
                )
                summary.sent.append(recipient.user_id)
            except Exception as e:
                summary.failed.append(recipient.user_id)
                logger.error(
                    f"Failed to email {frequency.value.lower()} report for user {recipient.user_id}: {e}",
                    exc_info=True,
                )

        logger.info(
            f"{frequency.value} report job finished: {len(summary.sent)} sent, {len(summary.failed)} failed"
        )
        return summary

    def reset_question_limits(self) -> int:
        """Reset every user's weekly question count."""
        logger.info("Running weekly Q&A limit reset job...")
        try:
            count = self.store.reset_weekly_question_counts()
        except Exception as e:
            logger.error(f"Weekly Q&A limit reset failed: {e}", exc_info=True)
            return 0
        logger.info(f"Weekly question limit reset for {count} user(s).")
        return count
