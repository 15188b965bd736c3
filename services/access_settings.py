"""
Persistence for the single access-settings row.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import AccessSettings
from infrastructure.database.models.access import ACCESS_SETTINGS_ROW_ID, AccessSettingsRecord

logger = logging.getLogger(__name__)


def _to_settings(record: AccessSettingsRecord) -> AccessSettings:
    return AccessSettings.from_mapping({
        "free_tests_enabled": record.free_tests_enabled,
        "free_tests_count": record.free_tests_count,
        "premium_required": record.premium_required,
        "global_free_access": record.global_free_access,
        "premium_test_indices": record.premium_test_indices or [],
    })


async def load_access_settings(db: AsyncSession) -> AccessSettings:
    """Stored settings, or the defaults when none are stored or the read fails.

    The defaults gate everything past the free quota, so a storage outage
    never opens premium tests to everyone.
    """
    try:
        record = await db.get(AccessSettingsRecord, ACCESS_SETTINGS_ROW_ID)
    except SQLAlchemyError as e:
        logger.error("Failed to load access settings, using defaults: %s", e)
        await db.rollback()
        return AccessSettings()

    if record is None:
        return AccessSettings()
    return _to_settings(record)


async def save_access_settings(
    db: AsyncSession,
    settings: AccessSettings,
    updated_by: str | None = None,
) -> AccessSettings:
    """Upsert the settings row and commit."""
    result = await db.execute(
        select(AccessSettingsRecord).where(AccessSettingsRecord.id == ACCESS_SETTINGS_ROW_ID)
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = AccessSettingsRecord(id=ACCESS_SETTINGS_ROW_ID)
        db.add(record)

    record.free_tests_enabled = settings.free_tests_enabled
    record.free_tests_count = settings.free_tests_count
    record.premium_required = settings.premium_required
    record.global_free_access = settings.global_free_access
    record.premium_test_indices = sorted(settings.premium_test_indices)
    record.updated_by = updated_by

    await db.commit()
    await db.refresh(record)
    logger.info("Access settings updated by %s: %s", updated_by, settings.to_dict())
    return _to_settings(record)
