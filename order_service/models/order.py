"""
SQLAlchemy Order model
"""
from sqlalchemy import Column, Integer, String, Float, Numeric, DateTime, Text, JSON, CheckConstraint
from sqlalchemy.sql import func
from order_service.database import Base


class Order(Base):
    """Order database model"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    items = Column(JSON, nullable=False)  # Frozen price snapshots
    address = Column(Text, nullable=False)
    state_name = Column(String(100), nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    status = Column(String(50), nullable=False, default='awaiting_payment', index=True)
    shipping_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)
    payment_reference = Column(String(100), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Constraints
    __table_args__ = (
        CheckConstraint('total >= 0', name='check_total_non_negative'),
        CheckConstraint(
            "status IN ('awaiting_payment', 'processing', 'shipped', 'delivered', 'cancelled')",
            name='check_order_status_valid'
        ),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, user_id='{self.user_id}', total={self.total}, status='{self.status}')>"
