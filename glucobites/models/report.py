"""
Report API Models
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict, List, Optional
from datetime import datetime, timezone

from glucobites.core.reports.records import ReportFrequency


class ReportRequest(BaseModel):
    """Request to email or export a health report."""
    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., description="'email' or 'export'")
    provider_email: Optional[str] = Field(default=None, alias="providerEmail")
    provider_name: Optional[str] = Field(default=None, alias="providerName")
    sections: List[str] = Field(default_factory=list, description="Categories to include; empty means all")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_to_naive_utc(cls, value: datetime) -> datetime:
        """Offset-aware timestamps become naive UTC so both bounds compare."""
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class ReportPreference(BaseModel):
    """Automated report frequency preference."""
    frequency: ReportFrequency


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    components: Dict[str, str]
