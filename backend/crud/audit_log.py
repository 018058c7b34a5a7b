from sqlalchemy.orm import Session
from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate


def create_audit_log(db: Session, log_entry: AuditLogCreate):
    db_log_entry = AuditLog(**log_entry.model_dump())
    db.add(db_log_entry)
    db.commit()
    db.refresh(db_log_entry)
    return db_log_entry


def get_audit_logs(db: Session, entity_type: str = None, action: str = None, changed_by: str = None, skip: int = 0, limit: int = 100):
    query = db.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type.upper())
    if action:
        query = query.filter(AuditLog.action == action.upper())
    if changed_by:
        query = query.filter(AuditLog.changed_by == changed_by)
    return query.order_by(AuditLog.changed_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
