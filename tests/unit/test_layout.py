"""
Unit Tests for the Table Layout Engine

Tests for row placement, page breaks, continuation headers and colouring.
"""
import pytest
from datetime import datetime, timedelta

from glucobites.core.errors import RenderError
from glucobites.core.reports.composer import table_spec
from glucobites.core.reports.formatter import format_glucose_row, format_calorie_row
from glucobites.core.reports.layout import DEFAULT_METRICS, TableLayoutEngine
from glucobites.core.reports.records import Category, FormattedRow, LogRecord, RenderState
from glucobites.core.reports.surface import PdfSurface


def _glucose_rows(count, start=datetime(2025, 3, 31, 20, 0)):
    return [
        format_glucose_row(LogRecord(Category.GLUCOSE, 100 + i, start - timedelta(hours=i), "Fasting"))
        for i in range(count)
    ]


@pytest.fixture
def glucose_spec():
    return table_spec(Category.GLUCOSE)


class TestPageBreaks:
    """Tests for row fitting and page breaking."""

    def test_twelve_rows_ten_fit(self, recording_surface, glucose_spec):
        """Rows sized so exactly 10 fit on the first page."""
        surface = recording_surface(row_height=54)
        engine = TableLayoutEngine(surface)
        state = RenderState(cursor_y=DEFAULT_METRICS.content_top)

        state = engine.render_table(state, glucose_spec, _glucose_rows(12))

        placement = engine.placements[0]
        pages = [r.page_index for r in placement.rows]
        assert pages == [0] * 10 + [1] * 2
        assert surface.page_count == 2
        assert state.page_index == 1
        assert placement.continued_on_pages == [1]

    def test_continuation_repeats_title_and_headers(self, recording_surface, glucose_spec):
        surface = recording_surface(row_height=54)
        engine = TableLayoutEngine(surface)
        engine.render_table(RenderState(cursor_y=DEFAULT_METRICS.content_top), glucose_spec, _glucose_rows(12))

        first_page = surface.texts(0)
        second_page = surface.texts(1)
        assert "Blood Glucose Logs" in first_page
        assert "Blood Glucose Logs (continued)" in second_page
        for header in ("Amount", "Date", "Tag/Food"):
            assert header in first_page
            assert header in second_page

    def test_rows_respect_margins(self, glucose_spec):
        """Real reportlab wrapping with tall multi-line labels."""
        surface = PdfSurface()
        engine = TableLayoutEngine(surface)
        long_label = "Grilled chicken with quinoa, roasted vegetables and a side of lemon yoghurt dressing " * 3
        rows = [
            FormattedRow(display_values=(f"{i} kcal", "3/1/2025, 8:00:00 AM", long_label))
            for i in range(60)
        ]

        engine.render_table(RenderState(cursor_y=DEFAULT_METRICS.content_top), table_spec(Category.CALORIE), rows)

        placement = engine.placements[0]
        assert len(placement.rows) == 60
        assert surface.page_count > 1
        for row in placement.rows:
            assert row.top >= DEFAULT_METRICS.content_top
            assert row.bottom <= DEFAULT_METRICS.content_bottom
        # page indices never go backwards
        page_indices = [r.page_index for r in placement.rows]
        assert page_indices == sorted(page_indices)
        assert surface.finish().startswith(b"%PDF")

    def test_title_block_moves_to_next_page(self, recording_surface, glucose_spec):
        surface = recording_surface()
        engine = TableLayoutEngine(surface)
        state = RenderState(cursor_y=DEFAULT_METRICS.content_bottom - 40)

        engine.render_table(state, glucose_spec, _glucose_rows(2))

        assert engine.placements[0].first_page_index == 1
        assert surface.texts(0) == []
        assert "Blood Glucose Logs" in surface.texts(1)

    def test_row_taller_than_page_fails(self, recording_surface, glucose_spec):
        surface = recording_surface(row_height=800)
        engine = TableLayoutEngine(surface)
        with pytest.raises(RenderError):
            engine.render_table(RenderState(cursor_y=DEFAULT_METRICS.content_top), glucose_spec, _glucose_rows(1))

    def test_trailing_spacing(self, recording_surface, glucose_spec):
        surface = recording_surface(row_height=12)
        engine = TableLayoutEngine(surface)
        state = engine.render_table(RenderState(cursor_y=100), glucose_spec, _glucose_rows(1))
        last = engine.placements[0].rows[-1]
        assert state.cursor_y == pytest.approx(last.bottom + DEFAULT_METRICS.row_spacing + 2 * 12)


class TestRowDrawing:
    """Tests for cell placement and colours."""

    def test_cells_share_baseline(self, recording_surface, glucose_spec):
        surface = recording_surface()
        engine = TableLayoutEngine(surface)
        engine.render_table(RenderState(cursor_y=50), glucose_spec, _glucose_rows(1))

        cells = [d for d in surface.draws if d.font_name == DEFAULT_METRICS.body_font]
        assert len(cells) == 3
        assert len({d.top for d in cells}) == 1
        assert [d.x for d in cells] == list(glucose_spec.column_positions)

    def test_rows_in_input_order(self, recording_surface, glucose_spec):
        surface = recording_surface()
        engine = TableLayoutEngine(surface)
        rows = _glucose_rows(5)
        engine.render_table(RenderState(cursor_y=50), glucose_spec, rows)

        amounts = [d.text for d in surface.draws if d.font_name == DEFAULT_METRICS.body_font and d.text.endswith("mg/dL")]
        assert amounts == [r.display_values[0] for r in rows]

    def test_alert_colouring(self, recording_surface, glucose_spec, thresholds):
        surface = recording_surface()
        engine = TableLayoutEngine(surface)
        when = datetime(2025, 3, 1, 8, 0)
        rows = [
            format_glucose_row(LogRecord(Category.GLUCOSE, 65, when, "Fasting")),
            format_glucose_row(LogRecord(Category.GLUCOSE, 140, when, "Fasting")),
            format_glucose_row(LogRecord(Category.GLUCOSE, 140, when, "Post-Meal")),
            format_glucose_row(LogRecord(Category.GLUCOSE, 260, when, "Post-Meal")),
        ]
        engine.render_table(RenderState(cursor_y=50), glucose_spec, rows, thresholds)

        assert [r.is_alert for r in engine.placements[0].rows] == [True, True, False, True]
        amount_colors = [
            d.color for d in surface.draws
            if d.font_name == DEFAULT_METRICS.body_font and d.text.endswith("mg/dL")
        ]
        alert, neutral = DEFAULT_METRICS.alert_color, DEFAULT_METRICS.neutral_color
        assert amount_colors == [alert, alert, neutral, alert]

    def test_non_glucose_rows_stay_neutral(self, recording_surface, thresholds):
        surface = recording_surface()
        engine = TableLayoutEngine(surface)
        rows = [format_calorie_row(LogRecord(Category.CALORIE, 5000, datetime(2025, 3, 1)))]
        engine.render_table(RenderState(cursor_y=50), table_spec(Category.CALORIE), rows, thresholds)
        assert engine.placements[0].rows[0].is_alert is False

    def test_surface_failure_becomes_render_error(self, glucose_spec):
        class BrokenSurface:
            def line_height(self, size):
                return size * 1.2

            def text_height(self, *args, **kwargs):
                raise ValueError("font not loaded")

            def draw_text(self, *args, **kwargs):
                return 12.0

            def new_page(self):
                pass

        engine = TableLayoutEngine(BrokenSurface())
        with pytest.raises(RenderError, match="font not loaded"):
            engine.render_table(RenderState(cursor_y=50), glucose_spec, _glucose_rows(1))
