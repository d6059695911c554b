"""
SQLAlchemy CustomOrder model
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func
from order_service.database import Base


class CustomOrder(Base):
    """Bespoke order priced by an admin after submission"""

    __tablename__ = "custom_orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    fabric = Column(String(255), nullable=False)
    style = Column(String(255), nullable=False)
    measurements = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)
    address = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default='pending', index=True)
    delivery_status = Column(String(50), nullable=False, default='not_started')
    price = Column(Numeric(12, 2), nullable=True)
    deposit = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in progress', 'completed', 'cancelled')",
            name='check_custom_status_valid'
        ),
        CheckConstraint(
            "delivery_status IN ('not_started', 'in_progress', 'delivered')",
            name='check_delivery_status_valid'
        ),
        CheckConstraint('price IS NULL OR price >= 0', name='check_custom_price_non_negative'),
    )

    def __repr__(self):
        return (
            f"<CustomOrder(id={self.id}, status='{self.status}', "
            f"delivery_status='{self.delivery_status}', price={self.price})>"
        )
