"""
Admin audit trail.
"""

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.admin import AdminAuditLog, AuditAction, AuditTargetType
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


def create_audit_log(
    db: AsyncSession,
    admin_user: User,
    action: AuditAction,
    target_type: AuditTargetType,
    target_id: Optional[str],
    description: str,
    metadata: Optional[dict] = None,
    ip_address: Optional[str] = None,
) -> AdminAuditLog:
    """
    Add an audit log entry to the session; committed with the change it records.
    """
    details = dict(metadata) if metadata else {}
    if description:
        details["description"] = description

    audit_log = AdminAuditLog(
        admin_user_id=admin_user.id,
        admin_email=admin_user.email,
        action=action.value,
        target_type=target_type.value,
        target_id=target_id,
        details=details or None,
        ip_address=ip_address,
    )
    db.add(audit_log)
    logger.info("Admin %s: %s %s/%s", admin_user.id, action.value, target_type.value, target_id)
    return audit_log
