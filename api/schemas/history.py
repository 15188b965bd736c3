"""
Test history schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SelectedColor(BaseModel):
    hex_code: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")
    color_name: dict[str, str] = Field(default_factory=dict, description="Color name keyed by locale")
    confidence_level: Optional[str] = None


class TestHistoryCreate(BaseModel):
    test_id: str = Field(..., min_length=1, max_length=120)
    selected_color: Optional[SelectedColor] = None
    result_substance: Optional[str] = Field(None, max_length=255)
    result_substance_ar: Optional[str] = Field(None, max_length=255)
    confidence: Optional[str] = Field(None, max_length=50)
    accuracy: Optional[float] = Field(None, ge=0, le=100)
    duration_seconds: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=5000)


class TestHistoryUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class TestHistoryResponse(BaseModel):
    id: str
    test_id: str
    test_name: str
    test_name_ar: Optional[str] = None
    selected_color: Optional[dict] = None
    result_substance: Optional[str] = None
    result_substance_ar: Optional[str] = None
    confidence: Optional[str] = None
    accuracy: Optional[float] = None
    duration_seconds: Optional[int] = None
    notes: Optional[str] = None
    is_premium: bool
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TestHistoryListResponse(BaseModel):
    items: list[TestHistoryResponse]
    total: int


class TestHistoryStatsResponse(BaseModel):
    total_tests: int
    completed_tests: int
    average_accuracy: float
    most_tested_substance: Optional[str] = None
    recent_tests: list[TestHistoryResponse]
    tests_by_month: dict[str, int]
