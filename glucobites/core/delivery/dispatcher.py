"""
Report Dispatcher

Delivers a rendered report either as an email to the patient's provider
or as a direct download, recording an audit entry for each delivery.
"""
from typing import Optional, Sequence

from glucobites.core.delivery.mailer import MailTransport, build_report_email
from glucobites.core.errors import ReportValidationError
from glucobites.core.reports.records import ReportArtifact
from glucobites.db.store import AuditEntry, HealthDataStore
from glucobites.utils import get_logger

logger = get_logger(__name__)

ACTION_EMAIL = "email"
ACTION_EXPORT = "export"


class ReportDispatcher:
    """Email and export delivery of report artifacts."""

    def __init__(self, store: HealthDataStore, transport: MailTransport, sender: str):
        self.store = store
        self.transport = transport
        self.sender = sender

    def export(self, user_id: int, artifact: ReportArtifact, sections: Sequence[str]) -> ReportArtifact:
        """Hand the artifact back to the caller as a download and audit it."""
        self.store.record_report_action(AuditEntry(
            user_id=user_id,
            action_type=ACTION_EXPORT,
            start_date=artifact.start_date,
            end_date=artifact.end_date,
            sections=list(sections),
        ))
        logger.info(f"Exported report {artifact.filename} for user {user_id}")
        return artifact

    def email(
        self,
        user_id: int,
        artifact: ReportArtifact,
        recipient_email: Optional[str],
        recipient_name: Optional[str],
        sections: Sequence[str],
        automated: bool = False,
    ) -> None:
        """
        Mail the artifact to the provider and audit the delivery.

        Raises:
            ReportValidationError: no recipient address
            TransportError: the mail transport rejected the message
        """
        if not recipient_email:
            raise ReportValidationError("A provider email is required to email a report.")

        message = build_report_email(artifact, self.sender, recipient_email, recipient_name, automated)
        self.transport.send(message)
        logger.info(f"Successfully sent report for user {user_id} to {recipient_email}")

        self.store.record_report_action(AuditEntry(
            user_id=user_id,
            action_type=ACTION_EMAIL,
            start_date=artifact.start_date,
            end_date=artifact.end_date,
            sections=list(sections),
            recipient_email=recipient_email,
            recipient_name=recipient_name,
        ))
