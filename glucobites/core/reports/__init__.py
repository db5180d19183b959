"""
Report Generation Module

Paginated PDF health reports built from logged glucose, calorie and sugar data:
- Formatter: log records to display rows with severity inputs
- Layout engine: titled tables with page breaks and repeated headers
- Composer: patient header, category tables, page title/footer stamping
"""
from .records import (
    Category, CATEGORY_ORDER, FormattedRow, LogRecord, PatientRecord,
    RenderState, ReportArtifact, ReportFrequency, TableSpec, ThresholdProfile
)
from .formatter import is_alert, partition_records
from .layout import LayoutMetrics, TableLayoutEngine, DEFAULT_METRICS
from .composer import DocumentComposer, report_type_label, build_filename

__all__ = [
    "Category",
    "CATEGORY_ORDER",
    "FormattedRow",
    "LogRecord",
    "PatientRecord",
    "RenderState",
    "ReportArtifact",
    "ReportFrequency",
    "TableSpec",
    "ThresholdProfile",
    "is_alert",
    "partition_records",
    "LayoutMetrics",
    "TableLayoutEngine",
    "DEFAULT_METRICS",
    "DocumentComposer",
    "report_type_label",
    "build_filename",
]
