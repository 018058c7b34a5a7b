import json
import logging
from typing import Any, Dict, Optional

import crud.audit_log as crud_audit_log
from database import SessionLocal
from schemas.audit_log import AuditLogCreate
from utils.clock import Clock, SystemClock

logger = logging.getLogger("audit_service")
audit_logger = logging.getLogger("audit")


class AuditSink:
    """
    Best-effort writer for the audit trail.

    Entries go to the ``audit_log`` table through a session of their own and
    to the ``audit`` logger as one JSON line. Nothing raised while recording is
    propagated: the operation being audited has already committed.
    """

    def __init__(self, session_factory=SessionLocal, clock: Clock = None):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        description: str,
        details: Optional[Dict[str, Any]] = None,
        changed_by: str = "system",
    ) -> None:
        db = None
        try:
            db = self.session_factory()
            details = dict(details or {})
            details.setdefault("date", self.clock.now().strftime("%d/%m/%Y %H:%M:%S"))
            entry = AuditLogCreate(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description,
                changed_by=changed_by or "system",
                details=json.loads(json.dumps(details, default=str)),
            )
            audit_logger.info(json.dumps(entry.model_dump(), default=str, ensure_ascii=False))
            crud_audit_log.create_audit_log(db=db, log_entry=entry)
        except Exception as e:
            if db is not None:
                db.rollback()
            logger.error(f"Failed to write audit entry {action} {entity_type} #{entity_id}: {e}", exc_info=True)
        finally:
            if db is not None:
                db.close()
