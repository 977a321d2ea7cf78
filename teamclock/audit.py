from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from teamclock.models import AuditLog

logger = logging.getLogger("teamclock.audit")


def log_audit(
    db: Session,
    *,
    actor_id: int,
    action: str,
    success: bool,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> None:
    """Persist an audit row in its own commit.

    A failed write is logged and rolled back; it never fails the caller.
    """
    audit = AuditLog(
        ts_utc=datetime.now(timezone.utc),
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        success=success,
        details=details or {},
    )
    db.add(audit)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(
            "audit_log_write_failed",
            extra={
                "request_id": request_id,
                "action": action,
                "actor_id": actor_id,
                "success": success,
            },
        )
        return

    logger.info(
        "audit_event",
        extra={
            "request_id": request_id,
            "action": action,
            "actor_id": actor_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "success": success,
            "details": details or {},
        },
    )
