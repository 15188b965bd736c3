"""
Chemical color-test catalog models.
"""

from typing import Optional

from sqlalchemy import Index, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class ChemicalTest(Base, TimestampMixin):
    """A presumptive color test (reagent method) and its expected color results."""

    __tablename__ = "chemical_tests"

    # Slug built from method name + test number, see core.catalog.generate_test_id
    id: Mapped[str] = mapped_column(String(120), primary_key=True)

    method_name: Mapped[str] = mapped_column(String(255), nullable=False)
    method_name_ar: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description_ar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prepare: Mapped[str] = mapped_column(Text, nullable=False, default="")
    prepare_ar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    test_type: Mapped[str] = mapped_column(String(50), nullable=False, default="F/L")
    test_number: Mapped[str] = mapped_column(String(50), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    safety_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    preparation_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Zero-based position in the public catalog; the access gate keys on it
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    color_results: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    """
    Structure:
    [
        {
            "color_result": "Purple",
            "color_result_ar": "بنفسجي",
            "possible_substance": "MDMA",
            "possible_substance_ar": "إم دي إم إيه",
            "hex_code": "#800080",
            "confidence_level": "high"
        }
    ]
    """

    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_chemical_tests_order", "display_order"),
        Index("ix_chemical_tests_type", "test_type"),
    )

    def __repr__(self) -> str:
        return f"<ChemicalTest(id={self.id}, order={self.display_order})>"
