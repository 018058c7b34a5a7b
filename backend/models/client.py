from sqlalchemy import Column, Integer, String, Date
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class Client(Base, TimestampMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    cpf = Column(String(14), unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)

    sales_orders = relationship("SalesOrder", back_populates="client")
