"""
Chemical test catalog service.

Loads the ordered catalog, applies the access gate to each entry and
renders entries in the requested locale.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import (
    AccessClassification,
    AccessSettings,
    UserSubscriptionState,
    classify_test_access,
    grants_access,
)
from core.i18n import pick, translate
from core.locale import coerce_locale
from infrastructure.database.models.catalog import ChemicalTest

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    """A test with its zero-based catalog position and access decision."""

    test: ChemicalTest
    index: int
    access: AccessClassification

    @property
    def accessible(self) -> bool:
        return grants_access(self.access)


async def load_ordered_tests(db: AsyncSession) -> list[ChemicalTest]:
    result = await db.execute(
        select(ChemicalTest).order_by(ChemicalTest.display_order, ChemicalTest.id)
    )
    return list(result.scalars().all())


def _matches(test: ChemicalTest, search: str | None, test_type: str | None) -> bool:
    if test_type and test.test_type != test_type:
        return False
    if not search:
        return True
    needle = search.strip().lower()
    haystack = [test.method_name, test.method_name_ar, test.description or ""]
    for result in test.color_results or []:
        haystack.append(result.get("possible_substance") or "")
        haystack.append(result.get("possible_substance_ar") or "")
    return any(needle in (value or "").lower() for value in haystack)


async def list_catalog(
    db: AsyncSession,
    access_settings: AccessSettings,
    subscription: UserSubscriptionState,
    search: str | None = None,
    test_type: str | None = None,
) -> list[CatalogEntry]:
    """Classified catalog entries; filters never change an entry's position."""
    entries = []
    for index, test in enumerate(await load_ordered_tests(db)):
        if not _matches(test, search, test_type):
            continue
        entries.append(
            CatalogEntry(
                test=test,
                index=index,
                access=classify_test_access(index, access_settings, subscription),
            )
        )
    return entries


async def get_catalog_entry(
    db: AsyncSession,
    test_id: str,
    access_settings: AccessSettings,
    subscription: UserSubscriptionState,
) -> CatalogEntry | None:
    for index, test in enumerate(await load_ordered_tests(db)):
        if test.id == test_id:
            return CatalogEntry(
                test=test,
                index=index,
                access=classify_test_access(index, access_settings, subscription),
            )
    return None


def localize_color_result(result: dict[str, Any], lang: str) -> dict[str, Any]:
    return {
        "color": pick(lang, result.get("color_result"), result.get("color_result_ar")),
        "substance": pick(lang, result.get("possible_substance"), result.get("possible_substance_ar")),
        "hex_code": result.get("hex_code"),
        "confidence_level": result.get("confidence_level"),
    }


def localize_entry(entry: CatalogEntry, lang: str, detail: bool = False) -> dict[str, Any]:
    """Render *entry* for *lang*; ``detail`` adds preparation and color results."""
    lang = coerce_locale(lang).value
    test = entry.test
    data = {
        "id": test.id,
        "index": entry.index,
        "name": pick(lang, test.method_name, test.method_name_ar),
        "description": pick(lang, test.description, test.description_ar),
        "test_type": test.test_type,
        "test_number": test.test_number,
        "safety_level": test.safety_level,
        "preparation_time": test.preparation_time,
        "access": entry.access.value,
        "access_label": translate(f"access.{entry.access.value}", lang),
        "accessible": entry.accessible,
    }
    if detail:
        data.update({
            "prepare": pick(lang, test.prepare, test.prepare_ar),
            "reference": test.reference,
            "color_results": [localize_color_result(r, lang) for r in test.color_results or []],
        })
    return data


async def list_test_types(db: AsyncSession) -> list[str]:
    result = await db.execute(
        select(ChemicalTest.test_type).distinct().order_by(ChemicalTest.test_type)
    )
    return [value for value in result.scalars().all() if value]


async def list_substances(db: AsyncSession, lang: str) -> list[str]:
    """Distinct possible substances across all color results, sorted."""
    substances = set()
    for test in await load_ordered_tests(db):
        for result in test.color_results or []:
            name = pick(lang, result.get("possible_substance"), result.get("possible_substance_ar"))
            if name:
                substances.add(name)
    return sorted(substances)


async def count_tests(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(ChemicalTest))).scalar_one()
