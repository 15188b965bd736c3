"""
User preference routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_optional_user
from api.schemas.auth import LocalePreferenceRequest
from core.locale import Locale
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preferences", tags=["Preferences"])


@router.put("/locale")
async def set_locale_preference(
    body: LocalePreferenceRequest,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Store the preferred UI language.

    Always sets the preference cookie read by locale routing; signed-in users
    also get their profile language updated.
    """
    locale = Locale(body.locale)

    if current_user is not None and current_user.language != locale.value:
        current_user.language = locale.value
        await db.commit()
        logger.info("User %s switched language to %s", current_user.id, locale.value)

    response = JSONResponse(content={"locale": locale.value, "direction": locale.direction})
    response.set_cookie(
        settings.locale_cookie_name,
        locale.value,
        max_age=settings.locale_cookie_max_age_days * 86400,
        path="/",
        samesite="lax",
        secure=settings.is_production,
    )
    return response
