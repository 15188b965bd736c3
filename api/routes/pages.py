"""
Locale-prefixed page routes.

Mounted at the application root under ``/{lang}``. The locale middleware has
already redirected unprefixed paths, so ``lang`` here is a supported locale.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_access_settings, get_subscription_state
from api.routes.catalog import build_catalog_response, build_detail_response
from api.schemas.catalog import CatalogDetailResponse, CatalogListResponse
from core.access import AccessSettings, UserSubscriptionState
from core.i18n import get_translations
from core.locale import Locale, is_supported_locale
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db

router = APIRouter(tags=["Pages"])


def page_locale(lang: str) -> Locale:
    if not is_supported_locale(lang):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return Locale(lang)


@router.get("/{lang}")
async def home(lang: str) -> dict:
    """Landing payload: locale, direction and the message catalog."""
    locale = page_locale(lang)
    return {
        "app": settings.app_name,
        "lang": locale.value,
        "direction": locale.direction,
        "messages": get_translations(locale.value),
    }


@router.get("/{lang}/tests", response_model=CatalogListResponse)
async def tests_page(
    lang: str,
    search: Optional[str] = Query(None, max_length=100),
    test_type: Optional[str] = Query(None, max_length=50),
    db: AsyncSession = Depends(get_db),
    access_settings: AccessSettings = Depends(get_access_settings),
    subscription: UserSubscriptionState = Depends(get_subscription_state),
) -> CatalogListResponse:
    return await build_catalog_response(
        db, page_locale(lang), access_settings, subscription, search=search, test_type=test_type
    )


@router.get("/{lang}/tests/{test_id}", response_model=CatalogDetailResponse)
async def test_page(
    lang: str,
    test_id: str,
    db: AsyncSession = Depends(get_db),
    access_settings: AccessSettings = Depends(get_access_settings),
    subscription: UserSubscriptionState = Depends(get_subscription_state),
) -> CatalogDetailResponse:
    return await build_detail_response(db, test_id, page_locale(lang), access_settings, subscription)
