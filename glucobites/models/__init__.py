"""
API request/response models.
"""
from .report import (
    ErrorResponse, HealthResponse, MessageResponse, ReportPreference, ReportRequest
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "ReportPreference",
    "ReportRequest",
]
