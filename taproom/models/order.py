"""Order model."""
from sqlalchemy import Column, Numeric, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.sql import func
from taproom.database import Base, BigId
import enum


class OrderStatus(enum.Enum):
    """Order status enum, in service order."""
    PENDING = "PENDING"
    IN_PREPARATION = "IN_PREPARATION"
    READY = "READY"
    SERVED = "SERVED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self):
        return self in (OrderStatus.PAID, OrderStatus.CANCELLED)


# Forward sequence; CANCELLED sits outside it
STATUS_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.IN_PREPARATION,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.PAID,
]


class Order(Base):
    """Order (comanda) with its line items."""

    __tablename__ = 'orders'

    id = Column(BigId, primary_key=True, autoincrement=True)
    status = Column(Enum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING)
    # Cached sum of item subtotals, recomputed on every item mutation
    total = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    promotion_id = Column(BigId, ForeignKey('promotion.id'), nullable=True)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')
    promotion = relationship('Promotion')

    @hybrid_property
    def amount_due(self):
        """Amount to charge: total - discount_amount."""
        return (self.total or 0) - (self.discount_amount or 0)

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        """Statuses only move forward; cancelling is allowed until the order closes."""
        if self.status.is_terminal:
            return False
        if new_status == OrderStatus.CANCELLED:
            return True
        return STATUS_SEQUENCE.index(new_status) > STATUS_SEQUENCE.index(self.status)

    def __repr__(self):
        return f"<Order(id={self.id}, total={self.total}, status={self.status.value})>"

    def to_dict(self, include_items=False):
        rv = {
            'id': self.id,
            'status': self.status.value,
            'total': str(self.total),
            'discount_amount': str(self.discount_amount),
            'amount_due': str(self.amount_due),
            'promotion_id': self.promotion_id,
            'notes': self.notes,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None,
        }
        if include_items:
            rv['items'] = [item.to_dict() for item in self.items]
        return rv
