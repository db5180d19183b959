"""
Service layer shared by the API and the scheduler.
"""
from .report_service import ReportService, parse_sections

__all__ = ["ReportService", "parse_sections"]
