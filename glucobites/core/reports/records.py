"""
Report Data Records

Typed containers passed between the data store, the formatter, the layout
engine and the dispatcher.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple, Union

Number = Union[Decimal, float, int]


class Category(str, Enum):
    """Measurement categories of logged data."""
    GLUCOSE = "glucose"
    CALORIE = "calorie"
    SUGAR = "sugar"

    @property
    def type_code(self) -> int:
        """Numeric type code used by the data_logs table."""
        return _TYPE_CODES[self]

    @classmethod
    def from_type_code(cls, code: int) -> "Category":
        for category, value in _TYPE_CODES.items():
            if value == code:
                return category
        raise ValueError(f"Unknown log type code: {code}")

    @classmethod
    def parse(cls, name: str) -> "Category":
        """Parse a section name such as 'Glucose' or 'bloodGlucose'."""
        key = name.strip().lower().replace(" ", "").replace("_", "")
        if key in ("glucose", "bloodglucose", "bloodsugar"):
            return cls.GLUCOSE
        if key in ("calorie", "calories"):
            return cls.CALORIE
        if key in ("sugar", "sugars", "sugarintake"):
            return cls.SUGAR
        raise ValueError(f"Unknown report section: {name}")


_TYPE_CODES = {
    Category.CALORIE: 1,
    Category.SUGAR: 2,
    Category.GLUCOSE: 3,
}

# Order in which category tables appear in a report
CATEGORY_ORDER = (Category.GLUCOSE, Category.CALORIE, Category.SUGAR)


class ReportFrequency(str, Enum):
    """Automated report preference."""
    DISABLED = "Disabled"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


@dataclass(frozen=True)
class LogRecord:
    """A single logged measurement as read from the data store."""
    category: Category
    amount: Number
    timestamp: datetime
    tag: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class ThresholdProfile:
    """Per-patient glucose boundaries used for row highlighting."""
    low: Optional[float] = None
    high_fasting: Optional[float] = None
    high_post_meal: Optional[float] = None
    very_high: Optional[float] = None


@dataclass(frozen=True)
class PatientRecord:
    """Patient demographics shown in the report header."""
    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    weight: Optional[Number] = None
    height: Optional[Number] = None
    gender: Optional[str] = None
    diabetes_type: Optional[int] = None
    uses_insulin: Optional[bool] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or 'User'} {self.last_name or self.user_id}"


@dataclass(frozen=True)
class FormattedRow:
    """One table row: display strings plus the inputs for severity colouring."""
    display_values: Tuple[str, ...]
    severity_value: Optional[float] = None
    severity_tag: Optional[str] = None


@dataclass(frozen=True)
class TableSpec:
    """Title, headers and column geometry of a report table."""
    title: str
    headers: Tuple[str, ...]
    column_positions: Tuple[float, ...]
    column_widths: Tuple[float, ...]


@dataclass
class RenderState:
    """
    Layout progress of a single render.

    cursor_y is measured in points from the top edge of the page.
    Owned by exactly one render and never shared.
    """
    cursor_y: float
    page_index: int = 0


@dataclass
class RowPlacement:
    """Where a table row ended up."""
    page_index: int
    top: float
    bottom: float
    is_alert: bool = False


@dataclass
class TablePlacement:
    """Record of a drawn table, one entry per row in input order."""
    title: str
    first_page_index: int
    rows: List[RowPlacement] = field(default_factory=list)
    continued_on_pages: List[int] = field(default_factory=list)

    @property
    def page_indices(self) -> List[int]:
        return sorted({self.first_page_index, *(r.page_index for r in self.rows)})


@dataclass(frozen=True)
class ReportArtifact:
    """A finished report: PDF bytes plus metadata for delivery."""
    pdf_bytes: bytes
    filename: str
    patient_name: str
    report_type_label: str
    start_date: datetime
    end_date: datetime
    page_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize metadata (without the PDF payload)."""
        return {
            "filename": self.filename,
            "patient_name": self.patient_name,
            "report_type": self.report_type_label,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "page_count": self.page_count,
            "size_bytes": len(self.pdf_bytes),
        }
