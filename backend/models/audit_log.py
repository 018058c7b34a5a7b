from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from models.audit_mixin import now_local


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False, index=True)  # CREATE, UPDATE, DELETE, LOGIN
    entity_type = Column(String, nullable=False, index=True)  # MEDICINE, SALE, STOCK, ...
    entity_id = Column(Integer, nullable=True)
    description = Column(String, nullable=True)
    details = Column(JSON)
    changed_by = Column(String, nullable=False)
    changed_at = Column(DateTime(timezone=True), default=now_local)
