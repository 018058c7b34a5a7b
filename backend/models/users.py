from database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from models.audit_mixin import now_local


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="VENDEDOR")  # ADMIN or VENDEDOR
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role}, is_active={self.is_active})>"
