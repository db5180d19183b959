"""
Shared fixtures for report pipeline tests.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from glucobites.core.reports.records import (
    Category, LogRecord, PatientRecord, ThresholdProfile
)
from glucobites.db.store import HealthDataStore, data_logs, user_thresholds, users


@dataclass
class DrawCall:
    page_index: int
    text: str
    x: float
    top: float
    font_name: str
    font_size: float
    color: str
    phase: str  # "content" or "stamp"


class RecordingSurface:
    """
    Drawing surface double that records every draw call.

    Text wraps only at explicit newlines. When row_height is set, every
    cell measures at that height so tests can control how many rows fit.
    """

    def __init__(self, page_width: float = 612.0, page_height: float = 792.0, row_height: Optional[float] = None):
        self.page_width = page_width
        self.page_height = page_height
        self.row_height = row_height
        self.draws: List[DrawCall] = []
        self.page_count = 1
        self._page_index = 0
        self._phase = "content"

    def line_height(self, font_size: float) -> float:
        return font_size * 1.2

    def text_height(self, text, width, font_name, font_size) -> float:
        if self.row_height is not None:
            return self.row_height
        return len(text.split("\n")) * self.line_height(font_size)

    def draw_text(self, text, x, top, font_name, font_size, width=None, color="#000000",
                  align="left", underline=False) -> float:
        self.draws.append(DrawCall(self._page_index, text, x, top, font_name, font_size, color, self._phase))
        return len(text.split("\n")) * self.line_height(font_size)

    def new_page(self) -> None:
        self.page_count += 1
        self._page_index += 1

    def finish(self, stamper=None) -> bytes:
        self._phase = "stamp"
        if stamper is not None:
            for index in range(self.page_count):
                self._page_index = index
                stamper(self, index, self.page_count)
        return b"%PDF-recorded"

    def texts(self, page_index: Optional[int] = None, phase: str = "content") -> List[str]:
        return [
            d.text for d in self.draws
            if d.phase == phase and (page_index is None or d.page_index == page_index)
        ]


@pytest.fixture
def recording_surface():
    """Factory for RecordingSurface instances."""
    return RecordingSurface


@pytest.fixture
def thresholds() -> ThresholdProfile:
    return ThresholdProfile(low=70, high_fasting=130, high_post_meal=180, very_high=250)


@pytest.fixture
def patient() -> PatientRecord:
    return PatientRecord(
        user_id=7,
        first_name="Jane",
        last_name="Doe",
        weight=68.5,
        height=165,
        gender="Female",
        diabetes_type=1,
        uses_insulin=True,
    )


@pytest.fixture
def sample_records() -> List[LogRecord]:
    """Mixed records in descending timestamp order."""
    base = datetime(2025, 3, 10, 9, 30)
    return [
        LogRecord(Category.GLUCOSE, 142.25, base, "Post-Meal"),
        LogRecord(Category.CALORIE, 512.6, base - timedelta(hours=1), label="Oatmeal"),
        LogRecord(Category.GLUCOSE, 65.0, base - timedelta(hours=2), "Fasting"),
        LogRecord(Category.SUGAR, 12.34, base - timedelta(hours=3)),
        LogRecord(Category.GLUCOSE, 101.0, base - timedelta(hours=4)),
    ]


@pytest.fixture
def store(tmp_path) -> HealthDataStore:
    """Empty SQLite-backed store with the schema created."""
    s = HealthDataStore.from_url(f"sqlite:///{tmp_path / 'test.db'}")
    s.create_schema()
    return s


@pytest.fixture
def seeded_store(store) -> HealthDataStore:
    """
    Store with:
    - user 1 (Jane Doe): thresholds, weekly reports to a provider, 3 glucose/1 calorie/1 sugar logs in March 2025
    - user 2 (no names): monthly reports, no logs
    - user 3: weekly preference but no provider email
    """
    with store.engine.begin() as conn:
        user_rows = [
            {"user_id": 1, "first_name": "Jane", "last_name": "Doe", "weight": 68.5, "height": 165,
             "gender": "Female", "diabetes": 1, "is_insulin": True, "questions_asked_this_week": 3},
            {"user_id": 2, "diabetes": 2, "is_insulin": False, "questions_asked_this_week": 5},
            {"user_id": 3, "first_name": "Sam", "last_name": "Lee", "diabetes": 2, "is_insulin": False},
        ]
        threshold_rows = [
            {"user_id": 1, "low_threshold": 70, "high_fasting_threshold": 130,
             "high_post_meal_threshold": 180, "very_high_threshold": 250,
             "automated_report_frequency": "Weekly",
             "preferred_provider_name": "Dr. Smith", "preferred_provider_email": "smith@clinic.example"},
            {"user_id": 2, "automated_report_frequency": "Monthly",
             "preferred_provider_email": "monthly@clinic.example"},
            {"user_id": 3, "automated_report_frequency": "Weekly"},
        ]
        log_rows = [
            {"user_id": 1, "type": 3, "amount": 95.0, "date": datetime(2025, 3, 1, 8, 0), "tag": "Fasting"},
            {"user_id": 1, "type": 3, "amount": 190.0, "date": datetime(2025, 3, 3, 13, 0), "tag": "Post-Meal"},
            {"user_id": 1, "type": 3, "amount": 120.0, "date": datetime(2025, 3, 2, 19, 0), "tag": None},
            {"user_id": 1, "type": 1, "amount": 640.0, "date": datetime(2025, 3, 2, 12, 0), "food_name": "Pasta"},
            {"user_id": 1, "type": 2, "amount": 22.5, "date": datetime(2025, 3, 2, 12, 5), "food_name": None},
            {"user_id": 1, "type": 3, "amount": 300.0, "date": datetime(2025, 4, 2, 8, 0), "tag": "Fasting"},
        ]
        # rows carry different columns, so insert them one at a time
        for table, rows in ((users, user_rows), (user_thresholds, threshold_rows), (data_logs, log_rows)):
            for row in rows:
                conn.execute(table.insert().values(**row))
    return store
