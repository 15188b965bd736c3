"""
Chemical test catalog schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocalizedColorResult(BaseModel):
    color: Optional[str] = None
    substance: Optional[str] = None
    hex_code: Optional[str] = None
    confidence_level: Optional[str] = None


class CatalogItem(BaseModel):
    """A catalog entry in the request language with its access decision."""

    id: str
    index: int = Field(..., description="Zero-based catalog position")
    name: str
    description: Optional[str] = None
    test_type: str
    test_number: str
    safety_level: Optional[str] = None
    preparation_time: Optional[int] = None
    access: str = Field(..., description="free-for-all, free-by-quota, premium-available or premium-required")
    access_label: str
    accessible: bool


class CatalogDetail(CatalogItem):
    prepare: Optional[str] = None
    reference: Optional[str] = None
    color_results: list[LocalizedColorResult] = []


class CatalogListResponse(BaseModel):
    lang: str
    direction: str
    tests: list[CatalogItem]
    total: int


class CatalogDetailResponse(BaseModel):
    lang: str
    direction: str
    test: CatalogDetail


# ============================================================================
# Admin catalog management
# ============================================================================


class ColorResultData(BaseModel):
    color_result: str = Field(..., min_length=1, max_length=100)
    color_result_ar: str = Field(..., min_length=1, max_length=100)
    possible_substance: str = Field(..., min_length=1, max_length=255)
    possible_substance_ar: str = Field(..., min_length=1, max_length=255)
    hex_code: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    confidence_level: Optional[str] = Field(None, max_length=20)


class ChemicalTestBase(BaseModel):
    method_name: str = Field(..., min_length=1, max_length=255)
    method_name_ar: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    description_ar: Optional[str] = None
    prepare: str = ""
    prepare_ar: Optional[str] = None
    test_type: str = Field("F/L", max_length=50)
    test_number: str = Field(..., min_length=1, max_length=50)
    reference: Optional[str] = None
    safety_level: Optional[str] = Field(None, pattern="^(low|medium|high|extreme)$")
    preparation_time: Optional[int] = Field(None, ge=0)
    display_order: Optional[int] = Field(None, ge=0)
    color_results: list[ColorResultData] = []


class ChemicalTestCreate(ChemicalTestBase):
    id: Optional[str] = Field(None, max_length=120, description="Generated from name and number when omitted")


class ChemicalTestUpdate(BaseModel):
    method_name: Optional[str] = Field(None, min_length=1, max_length=255)
    method_name_ar: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    description_ar: Optional[str] = None
    prepare: Optional[str] = None
    prepare_ar: Optional[str] = None
    test_type: Optional[str] = Field(None, max_length=50)
    test_number: Optional[str] = Field(None, min_length=1, max_length=50)
    reference: Optional[str] = None
    safety_level: Optional[str] = Field(None, pattern="^(low|medium|high|extreme)$")
    preparation_time: Optional[int] = Field(None, ge=0)
    display_order: Optional[int] = Field(None, ge=0)
    color_results: Optional[list[ColorResultData]] = None


class ChemicalTestResponse(ChemicalTestBase):
    id: str
    display_order: int
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChemicalTestListResponse(BaseModel):
    tests: list[ChemicalTestResponse]
    total: int


class ChemicalTestImportRequest(BaseModel):
    tests: list[ChemicalTestCreate] = Field(..., min_length=1, max_length=1000)

    @field_validator("tests")
    @classmethod
    def validate_unique_numbers(cls, v: list[ChemicalTestCreate]) -> list[ChemicalTestCreate]:
        seen = set()
        for test in v:
            key = (test.id or "", test.method_name.lower(), test.test_number.lower())
            if key in seen:
                raise ValueError(f"Duplicate test in import: {test.method_name} #{test.test_number}")
            seen.add(key)
        return v


class ChemicalTestImportResponse(BaseModel):
    created: int
    updated: int
    total: int


class CatalogStatsResponse(BaseModel):
    total_tests: int
    by_type: dict[str, int]
    by_safety_level: dict[str, int]
    total_color_results: int
