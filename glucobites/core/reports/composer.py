"""
Document Composer

Builds a complete health report: patient header block, one table per
non-empty category, then a final pass over every page that stamps the
report title and "Page i of N" footer.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from glucobites.core.errors import DataUnavailableError, RenderError
from glucobites.core.reports.formatter import format_report_date
from glucobites.core.reports.layout import DEFAULT_METRICS, LayoutMetrics, TableLayoutEngine
from glucobites.core.reports.records import (
    Category, CATEGORY_ORDER, FormattedRow, PatientRecord, RenderState,
    ReportArtifact, TablePlacement, TableSpec, ThresholdProfile
)
from glucobites.core.reports.surface import PdfSurface
from glucobites.utils import get_logger

logger = get_logger(__name__)

REPORT_TYPE_MANUAL = "Health Report"
REPORT_TYPE_AUTOMATED = "Automated Health Report"

TABLE_TITLES = {
    Category.GLUCOSE: "Blood Glucose Logs",
    Category.CALORIE: "Calorie Logs",
    Category.SUGAR: "Sugar Logs",
}

TABLE_HEADERS = ("Amount", "Date", "Tag/Food")


def report_type_label(automated: bool) -> str:
    return REPORT_TYPE_AUTOMATED if automated else REPORT_TYPE_MANUAL


def build_filename(patient_name: str, start_date: datetime) -> str:
    """Deterministic attachment name, e.g. 'Jane_Doe_2025-03-01.pdf'."""
    safe_name = re.sub(r"\s+", "_", patient_name)
    return f"{safe_name}_{start_date.strftime('%Y-%m-%d')}.pdf"


def table_spec(category: Category, metrics: LayoutMetrics = DEFAULT_METRICS) -> TableSpec:
    """Three-column layout shared by every category table."""
    m = metrics.margin
    return TableSpec(
        title=TABLE_TITLES[category],
        headers=TABLE_HEADERS,
        column_positions=(m, m + 120, m + 320),
        column_widths=(110, 190, metrics.page_width - m - 320 - m),
    )


@dataclass
class RenderedDocument:
    """Raw render output before it is wrapped into a ReportArtifact."""
    pdf_bytes: bytes
    page_count: int
    placements: List[TablePlacement] = field(default_factory=list)
    stamped_pages: List[int] = field(default_factory=list)


class DocumentComposer:
    """
    Lays out a patient report on a fresh surface per call.

    A composer holds only configuration, so one instance can serve
    concurrent renders; each render owns its own surface and RenderState.
    """

    def __init__(
        self,
        metrics: LayoutMetrics = DEFAULT_METRICS,
        surface_factory: Optional[Callable[[], object]] = None,
    ):
        self.metrics = metrics
        self._surface_factory = surface_factory or (
            lambda: PdfSurface(pagesize=(metrics.page_width, metrics.page_height))
        )

    def compose(
        self,
        patient: Optional[PatientRecord],
        thresholds: Optional[ThresholdProfile],
        rows_by_category: Dict[Category, Sequence[FormattedRow]],
        report_type: str,
        start_date: datetime,
        end_date: datetime,
    ) -> ReportArtifact:
        """
        Render the report and package it with its delivery metadata.

        Raises:
            DataUnavailableError: patient record is missing
            RenderError: the drawing surface failed
        """
        rendered = self.render(patient, thresholds, rows_by_category, report_type, start_date, end_date)
        patient_name = patient.display_name
        artifact = ReportArtifact(
            pdf_bytes=rendered.pdf_bytes,
            filename=build_filename(patient_name, start_date),
            patient_name=patient_name,
            report_type_label=report_type,
            start_date=start_date,
            end_date=end_date,
            page_count=rendered.page_count,
        )
        logger.info(
            f"Composed '{report_type}' for user {patient.user_id}: "
            f"{rendered.page_count} page(s), {len(rendered.pdf_bytes)} bytes"
        )
        return artifact

    def render(
        self,
        patient: Optional[PatientRecord],
        thresholds: Optional[ThresholdProfile],
        rows_by_category: Dict[Category, Sequence[FormattedRow]],
        report_type: str,
        start_date: datetime,
        end_date: datetime,
    ) -> RenderedDocument:
        """Lay out all content, then stamp every page in a second pass."""
        if patient is None:
            raise DataUnavailableError("User not found.")

        stamped: List[int] = []
        try:
            surface = self._surface_factory()
            state = RenderState(cursor_y=self.metrics.content_top)
            engine = TableLayoutEngine(surface, self.metrics)

            self._draw_patient_header(surface, state, patient, start_date, end_date)

            for category in CATEGORY_ORDER:
                rows = rows_by_category.get(category) or []
                if not rows:
                    continue
                limits = thresholds if category == Category.GLUCOSE else None
                state = engine.render_table(state, table_spec(category, self.metrics), rows, limits)

            def stamp(target, page_index: int, page_count: int) -> None:
                self._stamp_page(target, report_type, page_index, page_count)
                stamped.append(page_index)

            page_count = surface.page_count
            pdf_bytes = surface.finish(stamp)
        except (RenderError, DataUnavailableError):
            raise
        except Exception as e:
            raise RenderError(f"Failed to render report for user {patient.user_id}: {e}") from e

        return RenderedDocument(
            pdf_bytes=pdf_bytes,
            page_count=page_count,
            placements=engine.placements,
            stamped_pages=stamped,
        )

    def _draw_patient_header(
        self,
        surface,
        state: RenderState,
        patient: PatientRecord,
        start_date: datetime,
        end_date: datetime,
    ) -> None:
        m = self.metrics
        width = m.content_width
        bold, regular = m.title_font, m.body_font

        state.cursor_y += surface.draw_text(
            f"Patient: {patient.display_name}", m.margin, state.cursor_y, bold, m.title_size, width=width
        )
        state.cursor_y += surface.draw_text(
            f"Period: {format_report_date(start_date)} - {format_report_date(end_date)}",
            m.margin, state.cursor_y, bold, m.title_size, width=width,
        )
        state.cursor_y += 2 * surface.line_height(m.title_size)

        state.cursor_y += surface.draw_text(
            "Patient Information", m.margin, state.cursor_y, bold, m.title_size, width=width, underline=True
        )
        state.cursor_y += surface.line_height(m.title_size)

        for line in self._patient_info_lines(patient):
            state.cursor_y += surface.draw_text(line, m.margin, state.cursor_y, regular, m.body_size, width=width)
        state.cursor_y += 2 * surface.line_height(m.body_size)

    @staticmethod
    def _patient_info_lines(patient: PatientRecord) -> List[str]:
        return [
            f"Weight: {f'{patient.weight} kg' if patient.weight else 'N/A'}",
            f"Height: {f'{patient.height} cm' if patient.height else 'N/A'}",
            f"Gender: {patient.gender or 'N/A'}",
            f"Diabetes Type: {'Type 1' if patient.diabetes_type == 1 else 'Type 2'}",
            f"Using Insulin: {'Yes' if patient.uses_insulin else 'No'}",
        ]

    def _stamp_page(self, surface, report_type: str, page_index: int, page_count: int) -> None:
        """Centered report title near the top and page counter near the bottom."""
        m = self.metrics
        surface.draw_text(
            report_type, 0, m.margin / 2, m.title_font, 14, width=m.page_width, align="center"
        )
        surface.draw_text(
            f"Page {page_index + 1} of {page_count}", 0, m.page_height - m.margin / 1.5,
            m.body_font, 8, width=m.page_width, align="center",
        )
