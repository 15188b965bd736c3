"""
SQLAlchemy database models.
"""

from .access import ACCESS_SETTINGS_ROW_ID, AccessSettingsRecord
from .admin import AdminAuditLog, AuditAction, AuditTargetType
from .base import Base, TimestampMixin
from .catalog import ChemicalTest
from .history import PaymentRecord, TestHistoryEntry
from .user import SubscriptionTier, User, UserRole, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserStatus",
    "SubscriptionTier",
    "ChemicalTest",
    "AccessSettingsRecord",
    "ACCESS_SETTINGS_ROW_ID",
    "TestHistoryEntry",
    "PaymentRecord",
    "AdminAuditLog",
    "AuditAction",
    "AuditTargetType",
]
