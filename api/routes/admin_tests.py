"""
Admin chemical test management API routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.schemas.catalog import (
    CatalogStatsResponse,
    ChemicalTestCreate,
    ChemicalTestImportRequest,
    ChemicalTestImportResponse,
    ChemicalTestListResponse,
    ChemicalTestResponse,
    ChemicalTestUpdate,
)
from core.catalog import generate_test_id
from infrastructure.database.connection import get_db
from infrastructure.database.models.admin import AuditAction, AuditTargetType
from infrastructure.database.models.catalog import ChemicalTest
from infrastructure.database.models.user import User
from services.admin_audit import client_ip, create_audit_log
from services.catalog import load_ordered_tests

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/tests", tags=["Admin - Tests"])


async def _next_display_order(db: AsyncSession) -> int:
    current = (await db.execute(select(func.max(ChemicalTest.display_order)))).scalar()
    return 0 if current is None else current + 1


def _apply_fields(test: ChemicalTest, data: dict) -> None:
    for field, value in data.items():
        if field == "id":
            continue
        if field == "color_results":
            value = [dict(r) for r in value or []]
        setattr(test, field, value)


async def _get_test_or_404(db: AsyncSession, test_id: str) -> ChemicalTest:
    test = await db.get(ChemicalTest, test_id)
    if test is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Test not found",
        )
    return test


@router.get("", response_model=ChemicalTestListResponse)
async def list_tests(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTestListResponse:
    tests = await load_ordered_tests(db)
    return ChemicalTestListResponse(
        tests=[ChemicalTestResponse.model_validate(t) for t in tests],
        total=len(tests),
    )


@router.get("/stats", response_model=CatalogStatsResponse)
async def catalog_stats(
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> CatalogStatsResponse:
    tests = await load_ordered_tests(db)
    by_type: dict[str, int] = {}
    by_safety: dict[str, int] = {}
    for test in tests:
        by_type[test.test_type] = by_type.get(test.test_type, 0) + 1
        level = test.safety_level or "unknown"
        by_safety[level] = by_safety.get(level, 0) + 1
    return CatalogStatsResponse(
        total_tests=len(tests),
        by_type=by_type,
        by_safety_level=by_safety,
        total_color_results=sum(len(t.color_results or []) for t in tests),
    )


@router.get("/export", response_model=ChemicalTestListResponse)
async def export_tests(
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTestListResponse:
    """Full catalog in import format."""
    tests = await load_ordered_tests(db)
    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.TESTS_EXPORTED,
        target_type=AuditTargetType.SYSTEM,
        target_id=None,
        description=f"Exported {len(tests)} tests",
        ip_address=client_ip(request),
    )
    await db.commit()
    return ChemicalTestListResponse(
        tests=[ChemicalTestResponse.model_validate(t) for t in tests],
        total=len(tests),
    )


@router.post("/import", response_model=ChemicalTestImportResponse)
async def import_tests(
    body: ChemicalTestImportRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTestImportResponse:
    """
    Upsert tests by id. New tests without an explicit position go to the end.
    """
    created = updated = 0
    next_order = await _next_display_order(db)

    for item in body.tests:
        test_id = item.id or generate_test_id(item.method_name, item.test_number)
        data = item.model_dump(exclude_unset=True)
        test = await db.get(ChemicalTest, test_id)
        if test is None:
            test = ChemicalTest(id=test_id, created_by=admin_user.email)
            if item.display_order is None:
                data["display_order"] = next_order
                next_order += 1
            db.add(test)
            created += 1
        else:
            updated += 1
        _apply_fields(test, data)
        test.updated_by = admin_user.email

    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.TESTS_IMPORTED,
        target_type=AuditTargetType.SYSTEM,
        target_id=None,
        description=f"Imported {len(body.tests)} tests",
        metadata={"created": created, "updated": updated},
        ip_address=client_ip(request),
    )
    await db.commit()

    return ChemicalTestImportResponse(created=created, updated=updated, total=created + updated)


@router.post("", response_model=ChemicalTestResponse, status_code=status.HTTP_201_CREATED)
async def create_test(
    body: ChemicalTestCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTest:
    test_id = body.id or generate_test_id(body.method_name, body.test_number)
    if await db.get(ChemicalTest, test_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Test '{test_id}' already exists",
        )

    data = body.model_dump()
    if data.get("display_order") is None:
        data["display_order"] = await _next_display_order(db)

    test = ChemicalTest(id=test_id, created_by=admin_user.email, updated_by=admin_user.email)
    _apply_fields(test, data)
    db.add(test)

    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.TEST_CREATED,
        target_type=AuditTargetType.CHEMICAL_TEST,
        target_id=test_id,
        description=f"Created test {body.method_name}",
        ip_address=client_ip(request),
    )
    await db.commit()
    await db.refresh(test)
    return test


@router.get("/{test_id}", response_model=ChemicalTestResponse)
async def get_test(
    test_id: str,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTest:
    return await _get_test_or_404(db, test_id)


@router.put("/{test_id}", response_model=ChemicalTestResponse)
async def update_test(
    test_id: str,
    body: ChemicalTestUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
) -> ChemicalTest:
    test = await _get_test_or_404(db, test_id)
    data = body.model_dump(exclude_unset=True)
    if not data:
        return test

    _apply_fields(test, data)
    test.updated_by = admin_user.email

    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.TEST_UPDATED,
        target_type=AuditTargetType.CHEMICAL_TEST,
        target_id=test_id,
        description=f"Updated test {test.method_name}",
        metadata={"fields": sorted(data)},
        ip_address=client_ip(request),
    )
    await db.commit()
    await db.refresh(test)
    return test


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_test(
    test_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(get_current_admin_user),
    reason: Optional[str] = Query(None, max_length=500),
) -> None:
    test = await _get_test_or_404(db, test_id)
    await db.delete(test)
    create_audit_log(
        db=db,
        admin_user=admin_user,
        action=AuditAction.TEST_DELETED,
        target_type=AuditTargetType.CHEMICAL_TEST,
        target_id=test_id,
        description=f"Deleted test {test.method_name}",
        metadata={"reason": reason} if reason else None,
        ip_address=client_ip(request),
    )
    await db.commit()
