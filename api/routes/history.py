"""
Test history API routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_access_settings, get_current_user
from api.schemas.history import (
    TestHistoryCreate,
    TestHistoryListResponse,
    TestHistoryResponse,
    TestHistoryStatsResponse,
    TestHistoryUpdate,
)
from core.access import AccessClassification, AccessSettings
from infrastructure.database.connection import get_db
from infrastructure.database.models.history import TestHistoryEntry
from infrastructure.database.models.user import User
from services.catalog import get_catalog_entry
from services.subscription import subscription_state_for
from services.test_history import compute_stats, get_history_entry, list_history

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["History"])


@router.post("", response_model=TestHistoryResponse, status_code=status.HTTP_201_CREATED)
async def record_test(
    body: TestHistoryCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    access_settings: AccessSettings = Depends(get_access_settings),
) -> TestHistoryEntry:
    """
    Record a completed test. The test must exist and be open to the user.
    """
    entry = await get_catalog_entry(db, body.test_id, access_settings, subscription_state_for(current_user))
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Test not found",
        )
    if not entry.accessible:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This test requires a premium subscription",
        )

    record = TestHistoryEntry(
        user_id=current_user.id,
        test_id=entry.test.id,
        test_name=entry.test.method_name,
        test_name_ar=entry.test.method_name_ar,
        selected_color=body.selected_color.model_dump() if body.selected_color else None,
        result_substance=body.result_substance,
        result_substance_ar=body.result_substance_ar,
        confidence=body.confidence,
        accuracy=body.accuracy,
        duration_seconds=body.duration_seconds,
        notes=body.notes,
        is_premium=entry.access == AccessClassification.PREMIUM_AVAILABLE,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    logger.info("Recorded test %s for user %s", entry.test.id, current_user.id)
    return record


@router.get("", response_model=TestHistoryListResponse)
async def get_history(
    current_user: Annotated[User, Depends(get_current_user)],
    limit: int | None = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> TestHistoryListResponse:
    entries = await list_history(db, current_user.id, limit=limit)
    return TestHistoryListResponse(
        items=[TestHistoryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.get("/stats", response_model=TestHistoryStatsResponse)
async def get_history_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> TestHistoryStatsResponse:
    stats = compute_stats(await list_history(db, current_user.id))
    stats["recent_tests"] = [TestHistoryResponse.model_validate(e) for e in stats["recent_tests"]]
    return TestHistoryStatsResponse(**stats)


@router.patch("/{entry_id}", response_model=TestHistoryResponse)
async def update_history_entry(
    entry_id: str,
    body: TestHistoryUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> TestHistoryEntry:
    entry = await get_history_entry(db, current_user.id, entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="History entry not found",
        )
    entry.notes = body.notes
    await db.commit()
    await db.refresh(entry)
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history_entry(
    entry_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> None:
    entry = await get_history_entry(db, current_user.id, entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="History entry not found",
        )
    await db.delete(entry)
    await db.commit()
