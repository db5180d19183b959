"""
Table Layout Engine

Draws titled tables row by row against a drawing surface, measuring each
row's wrapped height, breaking pages before a row would cross the bottom
margin and repeating the title and headers on continuation pages.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from glucobites.core.errors import RenderError
from glucobites.core.reports.formatter import is_alert
from glucobites.core.reports.records import (
    FormattedRow, RenderState, RowPlacement, TablePlacement, TableSpec, ThresholdProfile
)
from glucobites.utils import get_logger

logger = get_logger(__name__)

CONTINUED_SUFFIX = " (continued)"


@dataclass(frozen=True)
class LayoutMetrics:
    """Page geometry, fonts and spacing shared by the composer and layout engine."""
    page_width: float = 612.0   # US Letter
    page_height: float = 792.0
    margin: float = 50.0
    bottom_padding: float = 20.0
    title_reserve: float = 80.0  # room a new table needs for its title block

    title_font: str = "Helvetica-Bold"
    title_size: float = 12.0
    header_font: str = "Helvetica-Bold"
    header_size: float = 10.0
    body_font: str = "Helvetica"
    body_size: float = 10.0

    header_row_lines: float = 2.5  # header text line plus 1.5 lines of gap
    row_spacing: float = 5.0
    trailing_lines: float = 2.0

    alert_color: str = "#D32F2F"
    neutral_color: str = "#000000"

    @property
    def content_top(self) -> float:
        return self.margin

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.margin - self.bottom_padding

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin


DEFAULT_METRICS = LayoutMetrics()


class TableLayoutEngine:
    """
    Renders report tables onto a surface.

    The engine keeps no cursor of its own: the RenderState passed to
    render_table is advanced and returned. One TablePlacement is recorded
    per table so callers can see which page every row landed on.
    """

    def __init__(self, surface, metrics: LayoutMetrics = DEFAULT_METRICS):
        self.surface = surface
        self.metrics = metrics
        self.placements: List[TablePlacement] = []

    def render_table(
        self,
        state: RenderState,
        spec: TableSpec,
        rows: Sequence[FormattedRow],
        thresholds: Optional[ThresholdProfile] = None,
    ) -> RenderState:
        """
        Draw one table starting at the state's cursor.

        Args:
            state: Current render state (mutated and returned)
            spec: Title, headers and column geometry
            rows: Rows in display order
            thresholds: Glucose limits; None disables highlighting

        Returns:
            The advanced render state
        """
        m = self.metrics
        try:
            if state.cursor_y + m.title_reserve > m.content_bottom:
                self._break_page(state)

            placement = TablePlacement(title=spec.title, first_page_index=state.page_index)
            self._draw_title(state, spec.title)
            self._draw_headers(state, spec)

            for row in rows:
                row_height = self._measure_row(row, spec)

                if state.cursor_y + row_height > m.content_bottom:
                    self._break_page(state)
                    self._draw_title(state, spec.title + CONTINUED_SUFFIX)
                    self._draw_headers(state, spec)
                    placement.continued_on_pages.append(state.page_index)
                    if state.cursor_y + row_height > m.content_bottom:
                        raise RenderError(
                            f"Row in '{spec.title}' is {row_height:.1f}pt tall and cannot fit on a page"
                        )

                alert = is_alert(row.severity_value, row.severity_tag, thresholds)
                color = m.alert_color if alert else m.neutral_color
                top = state.cursor_y
                for text, x, width in zip(row.display_values, spec.column_positions, spec.column_widths):
                    self.surface.draw_text(
                        text, x, top, m.body_font, m.body_size, width=width, color=color
                    )

                placement.rows.append(RowPlacement(
                    page_index=state.page_index, top=top, bottom=top + row_height, is_alert=alert
                ))
                state.cursor_y = top + row_height + m.row_spacing

            state.cursor_y += m.trailing_lines * self.surface.line_height(m.body_size)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Failed to render table '{spec.title}': {e}") from e

        self.placements.append(placement)
        logger.debug(
            f"Rendered table '{spec.title}': {len(rows)} rows on pages {placement.page_indices}"
        )
        return state

    def _measure_row(self, row: FormattedRow, spec: TableSpec) -> float:
        """Tallest wrapped cell of the row; rows are never split across pages."""
        m = self.metrics
        return max(
            (self.surface.text_height(text, width, m.body_font, m.body_size)
             for text, width in zip(row.display_values, spec.column_widths)),
            default=0.0,
        )

    def _break_page(self, state: RenderState) -> None:
        self.surface.new_page()
        state.page_index += 1
        state.cursor_y = self.metrics.content_top

    def _draw_title(self, state: RenderState, title: str) -> None:
        m = self.metrics
        height = self.surface.draw_text(
            title, m.margin, state.cursor_y, m.title_font, m.title_size,
            width=m.content_width, underline=True,
        )
        # title line plus one blank line
        state.cursor_y += height + self.surface.line_height(m.title_size)

    def _draw_headers(self, state: RenderState, spec: TableSpec) -> None:
        m = self.metrics
        for header, x, width in zip(spec.headers, spec.column_positions, spec.column_widths):
            self.surface.draw_text(header, x, state.cursor_y, m.header_font, m.header_size, width=width)
        state.cursor_y += m.header_row_lines * self.surface.line_height(m.header_size)
