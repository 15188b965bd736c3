"""
Chemical test catalog API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_access_settings, get_subscription_state
from api.schemas.catalog import CatalogDetailResponse, CatalogListResponse
from core.access import AccessSettings, UserSubscriptionState
from core.i18n import translate
from core.locale import Locale, coerce_locale
from infrastructure.database.connection import get_db
from services.catalog import (
    get_catalog_entry,
    list_catalog,
    list_substances,
    list_test_types,
    localize_entry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tests", tags=["Catalog"])


async def build_catalog_response(
    db: AsyncSession,
    lang: Locale,
    access_settings: AccessSettings,
    subscription: UserSubscriptionState,
    search: Optional[str] = None,
    test_type: Optional[str] = None,
) -> CatalogListResponse:
    entries = await list_catalog(db, access_settings, subscription, search=search, test_type=test_type)
    return CatalogListResponse(
        lang=lang.value,
        direction=lang.direction,
        tests=[localize_entry(entry, lang) for entry in entries],
        total=len(entries),
    )


async def build_detail_response(
    db: AsyncSession,
    test_id: str,
    lang: Locale,
    access_settings: AccessSettings,
    subscription: UserSubscriptionState,
) -> CatalogDetailResponse:
    """Detail for one test; 404 when unknown, 403 when premium is required."""
    entry = await get_catalog_entry(db, test_id, access_settings, subscription)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=translate("tests.not_found", lang),
        )
    if not entry.accessible:
        logger.info("Test %s gated at index %d (%s)", test_id, entry.index, entry.access.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": translate("access.denied", lang),
                "access": entry.access.value,
                "test_id": test_id,
            },
        )
    return CatalogDetailResponse(
        lang=lang.value,
        direction=lang.direction,
        test=localize_entry(entry, lang, detail=True),
    )


@router.get("", response_model=CatalogListResponse)
async def list_tests(
    lang: str = Query("en", max_length=10),
    search: Optional[str] = Query(None, max_length=100),
    test_type: Optional[str] = Query(None, max_length=50),
    db: AsyncSession = Depends(get_db),
    access_settings: AccessSettings = Depends(get_access_settings),
    subscription: UserSubscriptionState = Depends(get_subscription_state),
) -> CatalogListResponse:
    """
    Ordered catalog with each test's access classification.

    Filtering never changes a test's catalog position or classification.
    """
    return await build_catalog_response(
        db, coerce_locale(lang), access_settings, subscription, search=search, test_type=test_type
    )


@router.get("/types", response_model=list[str])
async def get_test_types(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await list_test_types(db)


@router.get("/substances", response_model=list[str])
async def get_substances(
    lang: str = Query("en", max_length=10),
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    return await list_substances(db, coerce_locale(lang).value)


@router.get("/{test_id}", response_model=CatalogDetailResponse)
async def get_test(
    test_id: str,
    lang: str = Query("en", max_length=10),
    db: AsyncSession = Depends(get_db),
    access_settings: AccessSettings = Depends(get_access_settings),
    subscription: UserSubscriptionState = Depends(get_subscription_state),
) -> CatalogDetailResponse:
    return await build_detail_response(db, test_id, coerce_locale(lang), access_settings, subscription)
