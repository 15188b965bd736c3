"""
Access settings storage (single row).
"""

from typing import Optional

from sqlalchemy import Boolean, Integer, String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

ACCESS_SETTINGS_ROW_ID = 1


class AccessSettingsRecord(Base, TimestampMixin):
    """Administrator-edited free/premium access configuration."""

    __tablename__ = "access_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=ACCESS_SETTINGS_ROW_ID)

    free_tests_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    free_tests_count: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    premium_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    global_free_access: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # 1-based catalog positions
    premium_test_indices: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AccessSettingsRecord(global_free={self.global_free_access}, "
            f"free_count={self.free_tests_count})>"
        )
