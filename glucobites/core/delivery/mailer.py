"""
Report Email Builder and Mail Transports

Packages a rendered report as a multipart/mixed message (plain-text body
plus base64 PDF attachment) and sends it through Amazon SES or SMTP.
"""
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from glucobites.config import Settings
from glucobites.core.errors import TransportError
from glucobites.core.reports.formatter import format_report_date
from glucobites.core.reports.records import ReportArtifact
from glucobites.utils import get_logger

logger = get_logger(__name__)


def build_email_body(artifact: ReportArtifact, recipient_name: Optional[str], automated: bool) -> str:
    return (
        f"Dear {recipient_name or 'Health Provider'},\n\n"
        f"Please find the attached {'automated ' if automated else ''}health report for "
        f"{artifact.patient_name} covering the period from {format_report_date(artifact.start_date)} "
        f"to {format_report_date(artifact.end_date)}.\n\n"
        "This report was generated by the GlucoBites application.\n\n"
        "Best regards,\nThe GlucoBites Team"
    )


def build_report_email(
    artifact: ReportArtifact,
    sender: str,
    recipient_email: str,
    recipient_name: Optional[str] = None,
    automated: bool = False,
) -> MIMEMultipart:
    """
    Build the provider email carrying the report.

    Args:
        artifact: Rendered report
        sender: From header, e.g. '"GlucoBites" <reports@example.org>'
        recipient_email: Provider address
        recipient_name: Provider name used in the greeting
        automated: Scheduled report (changes the body wording)

    Returns:
        multipart/mixed message with text body and PDF attachment
    """
    message = MIMEMultipart("mixed")
    message["From"] = sender
    message["To"] = recipient_email
    message["Subject"] = f"{artifact.report_type_label} for {artifact.patient_name}"

    message.attach(MIMEText(build_email_body(artifact, recipient_name, automated), "plain", "utf-8"))

    attachment = MIMEApplication(artifact.pdf_bytes, _subtype="pdf", name=artifact.filename)
    attachment.add_header("Content-Disposition", "attachment", filename=artifact.filename)
    message.attach(attachment)
    return message


class MailTransport:
    """Outbound delivery of a fully built message."""

    def send(self, message: MIMEMultipart) -> None:
        raise NotImplementedError


class SesMailTransport(MailTransport):
    """
    Sends raw MIME messages through Amazon SES.

    The boto3 client is created on the first send, so a missing region or
    credentials surface as a TransportError for that delivery.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client: Any = None,
    ):
        self.region = region
        self._access_key = access_key
        self._secret_key = secret_key
        self._client = client

    def _get_client(self):
        if self._client is None:
            kwargs: Dict[str, Any] = {"service_name": "ses", "region_name": self.region}
            if self._access_key and self._secret_key:
                kwargs.update(aws_access_key_id=self._access_key, aws_secret_access_key=self._secret_key)
            self._client = boto3.client(**kwargs)
        return self._client

    def send(self, message: MIMEMultipart) -> None:
        try:
            response = self._get_client().send_raw_email(RawMessage={"Data": message.as_bytes()})
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"SES delivery to {message['To']} failed: {e}") from e
        logger.info(f"SES accepted message for {message['To']} (id={response.get('MessageId')})")


class SmtpMailTransport(MailTransport):
    """Sends messages over SMTP with implicit TLS."""

    def __init__(self, host: str, port: int, user: Optional[str] = None, password: Optional[str] = None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def send(self, message: MIMEMultipart) -> None:
        try:
            with smtplib.SMTP_SSL(self.host, self.port) as server:
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP delivery to {message['To']} failed: {e}") from e
        logger.info(f"SMTP delivered message to {message['To']}")


def build_mail_transport(settings: Settings) -> MailTransport:
    """Create the transport selected by settings.mail_transport."""
    kind = settings.mail_transport.lower()
    if kind == "ses":
        return SesMailTransport(settings.aws_region, settings.ses_access_key, settings.ses_secret_key)
    if kind == "smtp":
        return SmtpMailTransport(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_password)
    raise ValueError(f"Unknown mail transport: {settings.mail_transport}")
