"""
User test history and payment records.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, JSON, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class TestHistoryEntry(Base, TimestampMixin):
    """A completed color test recorded for a user."""

    __tablename__ = "test_history"
    __test__ = False  # keep pytest from collecting this as a test class

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    test_id: Mapped[str] = mapped_column(String(120), nullable=False)
    test_name: Mapped[str] = mapped_column(String(255), nullable=False)
    test_name_ar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    selected_color: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure:
    {
        "hex_code": "#800080",
        "color_name": {"en": "Purple", "ar": "بنفسجي"},
        "confidence_level": "high"
    }
    """

    result_substance: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    result_substance_ar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    confidence: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    accuracy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_test_history_user_completed", "user_id", "completed_at"),
    )

    def __repr__(self) -> str:
        return f"<TestHistoryEntry(id={self.id}, user_id={self.user_id}, test_id={self.test_id})>"


class PaymentRecord(Base, TimestampMixin):
    """Payment event received from the payment provider."""

    __tablename__ = "payment_records"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    provider_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    event_name: Mapped[str] = mapped_column(String(100), nullable=False)
    plan: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(10), default="SAR", nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)  # completed, failed, refunded
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<PaymentRecord(id={self.id}, user_id={self.user_id}, status={self.status})>"
