"""
Report Service - Centralized Report Generation Logic

Loads patient data, formats and composes the PDF, then dispatches it.
Shared by the HTTP endpoint and the automated scheduler.
"""
from datetime import datetime
from typing import List, Optional, Sequence

from glucobites.core.delivery.dispatcher import ACTION_EMAIL, ACTION_EXPORT, ReportDispatcher
from glucobites.core.errors import DataUnavailableError, ReportValidationError
from glucobites.core.reports.composer import DocumentComposer, report_type_label
from glucobites.core.reports.formatter import partition_records
from glucobites.core.reports.records import Category, CATEGORY_ORDER, ReportArtifact
from glucobites.db.store import HealthDataStore
from glucobites.utils import get_logger

logger = get_logger(__name__)

VALID_ACTIONS = (ACTION_EMAIL, ACTION_EXPORT)


def parse_sections(sections: Optional[Sequence[str]]) -> List[Category]:
    """Requested section names to categories; empty means every category."""
    if not sections:
        return list(CATEGORY_ORDER)
    try:
        requested = {Category.parse(name) for name in sections}
    except ValueError as e:
        raise ReportValidationError(str(e)) from e
    return [c for c in CATEGORY_ORDER if c in requested]


class ReportService:
    """
    Service class for the report pipeline.
    Decouples the workflow from FastAPI endpoints and the scheduler.
    """

    def __init__(
        self,
        store: HealthDataStore,
        dispatcher: ReportDispatcher,
        composer: Optional[DocumentComposer] = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.composer = composer or DocumentComposer()

    def build_artifact(
        self,
        user_id: int,
        start_date: datetime,
        end_date: datetime,
        categories: Optional[Sequence[Category]] = None,
        automated: bool = False,
    ) -> ReportArtifact:
        """
        Render the report for one user and date window.

        Raises:
            DataUnavailableError: the user does not exist
            RenderError: PDF rendering failed
        """
        patient = self.store.get_patient(user_id)
        if patient is None:
            raise DataUnavailableError(f"User {user_id} not found.")

        thresholds = self.store.get_thresholds(user_id)
        records = self.store.get_logs(user_id, start_date, end_date, categories)
        rows = partition_records(records)
        logger.info(
            f"Building report for user {user_id}: "
            + ", ".join(f"{c.value}={len(rows[c])}" for c in CATEGORY_ORDER)
        )

        return self.composer.compose(
            patient, thresholds, rows, report_type_label(automated), start_date, end_date
        )

    def handle_request(
        self,
        user_id: int,
        action: str,
        start_date: datetime,
        end_date: datetime,
        sections: Optional[Sequence[str]] = None,
        provider_email: Optional[str] = None,
        provider_name: Optional[str] = None,
    ) -> Optional[ReportArtifact]:
        """
        Run an interactive report request.

        Returns:
            The artifact for 'export'; None for 'email' (delivered out of band)
        """
        if action not in VALID_ACTIONS:
            raise ReportValidationError("Invalid action specified.")
        try:
            reversed_window = start_date > end_date
        except TypeError as e:
            raise ReportValidationError("startDate and endDate must both carry a UTC offset or neither.") from e
        if reversed_window:
            raise ReportValidationError("startDate must not be after endDate.")
        if action == ACTION_EMAIL and not provider_email:
            raise ReportValidationError("providerEmail is required for the email action.")
        categories = parse_sections(sections)
        section_names = list(sections or [])

        artifact = self.build_artifact(user_id, start_date, end_date, categories, automated=False)

        if action == ACTION_EXPORT:
            return self.dispatcher.export(user_id, artifact, section_names)

        self.dispatcher.email(user_id, artifact, provider_email, provider_name, section_names)
        return None

    def send_automated_report(
        self,
        user_id: int,
        start_date: datetime,
        end_date: datetime,
        provider_email: str,
        provider_name: Optional[str] = None,
    ) -> ReportArtifact:
        """Render and email a scheduled report covering every category."""
        artifact = self.build_artifact(user_id, start_date, end_date, automated=True)
        self.dispatcher.email(
            user_id, artifact, provider_email, provider_name,
            [c.value for c in CATEGORY_ORDER], automated=True,
        )
        return artifact
