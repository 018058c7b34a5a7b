from sqlalchemy import Column, Integer, Numeric, String, Text, Date, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class Medicine(Base, TimestampMixin):
    __tablename__ = "medicines"
    # Ids are never reused: stock_movements and alerts refer to them without a foreign key
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    # Cached projection of the stock ledger; only StockService writes it after creation
    quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date, nullable=True, index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    images = Column(JSON, nullable=False, default=list)

    category = relationship("Category", back_populates="medicines")

    def __repr__(self):
        return f"<Medicine(id={self.id}, name={self.name}, quantity={self.quantity}, active={self.active})>"

    @property
    def category_name(self):
        return self.category.name if self.category else None
