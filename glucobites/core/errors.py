"""
Report Pipeline Errors

Every failure of a single report is fatal for that report and is raised to
the immediate caller (HTTP handler or scheduler iteration).
"""


class ReportError(Exception):
    """Base class for report pipeline failures."""


class ReportValidationError(ReportError):
    """Caller input is malformed or missing. Raised before rendering starts."""


class DataUnavailableError(ReportError):
    """Patient data required for the report could not be found."""


class RenderError(ReportError):
    """The drawing surface failed. Any partial PDF is discarded."""


class TransportError(ReportError):
    """Outbound mail delivery failed. Not retried."""
