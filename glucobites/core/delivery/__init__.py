"""
Delivery Module

Email and export dispatch of rendered reports.
"""
from .dispatcher import ReportDispatcher, ACTION_EMAIL, ACTION_EXPORT
from .mailer import (
    MailTransport, SesMailTransport, SmtpMailTransport,
    build_mail_transport, build_report_email
)

__all__ = [
    "ReportDispatcher",
    "ACTION_EMAIL",
    "ACTION_EXPORT",
    "MailTransport",
    "SesMailTransport",
    "SmtpMailTransport",
    "build_mail_transport",
    "build_report_email",
]
