from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

import crud.audit_log as crud_audit_log
from database import get_db
from schemas.audit_log import AuditLog as AuditLogSchema
from utils.auth_utils import ROLE_ADMIN, require_role

router = APIRouter(prefix="/logs", tags=["Audit Log"])


@router.get("/", response_model=List[AuditLogSchema])
def get_audit_logs(
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    changed_by: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_role(ROLE_ADMIN)),
):
    """Audit trail, newest first."""
    return crud_audit_log.get_audit_logs(db, entity_type=entity_type, action=action, changed_by=changed_by, skip=skip, limit=limit)
