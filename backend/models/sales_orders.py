from sqlalchemy import Column, Integer, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin


class SalesOrderStatus(enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SalesOrder(Base, TimestampMixin):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(Enum(SalesOrderStatus), default=SalesOrderStatus.PENDING, nullable=False)
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)

    # Relationships
    client = relationship("Client", back_populates="sales_orders")
    user = relationship("User")
    items = relationship("SalesOrderItem", back_populates="sales_order", cascade="all, delete-orphan", order_by="SalesOrderItem.id")

    @property
    def client_name(self):
        return self.client.name if self.client else None
