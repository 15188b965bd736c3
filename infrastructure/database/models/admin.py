"""
Admin database models.
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import Index, String, JSON, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class AuditAction(str, Enum):
    """Admin audit log action types."""

    # User management
    USER_UPDATED = "user_updated"
    ROLE_CHANGED = "role_changed"
    SUBSCRIPTION_UPDATED = "subscription_updated"

    # Catalog management
    TEST_CREATED = "test_created"
    TEST_UPDATED = "test_updated"
    TEST_DELETED = "test_deleted"
    TESTS_IMPORTED = "tests_imported"
    TESTS_EXPORTED = "tests_exported"

    # Access settings
    ACCESS_SETTINGS_UPDATED = "access_settings_updated"


class AuditTargetType(str, Enum):
    """Admin audit log target types."""

    USER = "user"
    SUBSCRIPTION = "subscription"
    CHEMICAL_TEST = "chemical_test"
    ACCESS_SETTINGS = "access_settings"
    SYSTEM = "system"


class AdminAuditLog(Base, TimestampMixin):
    """Audit trail of administrative changes."""

    __tablename__ = "admin_audit_logs"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    admin_user_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    admin_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    # Target resource; test slugs and user UUIDs share the column
    target_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    target_id: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure:
    {
        "old_value": {...},
        "new_value": {...},
        "description": "Updated free test count"
    }
    """

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length

    admin_user: Mapped[Optional["User"]] = relationship(  # noqa: F821
        "User",
        foreign_keys=[admin_user_id],
        lazy="joined",
    )

    __table_args__ = (
        Index("ix_admin_audit_admin_action", "admin_user_id", "action"),
        Index("ix_admin_audit_target", "target_type", "target_id"),
        Index("ix_admin_audit_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AdminAuditLog(id={self.id}, action={self.action}, admin_id={self.admin_user_id})>"
