import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wims.core.config import settings
from wims.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,
    details: str,
    ip_address: Optional[str] = None,
) -> AuditLog:
    # written inside the caller's unit of work so it rolls back with it
    entry = AuditLog(
        user_id=user_id,
        action=action,
        details=details,
        ip_address=ip_address,
    )
    db.add(entry)
    db.flush()

    logger.info("audit action=%s user_id=%s", action, user_id)
    return entry


def recent(db: Session, limit: Optional[int] = None) -> List[AuditLog]:
    cap = settings.audit_log_limit
    limit = cap if limit is None else max(1, min(limit, cap))

    return list(
        db.scalars(
            select(AuditLog).order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit)
        )
    )
