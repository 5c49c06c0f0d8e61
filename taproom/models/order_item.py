"""Order Item model."""
from sqlalchemy import Column, Integer, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taproom.database import Base, BigId


class OrderItem(Base):
    """Line item: a quantity of one variant at a snapshotted price."""

    __tablename__ = 'order_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    order_id = Column(BigId, ForeignKey('orders.id'), nullable=False, index=True)
    variant_id = Column(BigId, ForeignKey('product_variant.id'), nullable=False)
    # Keg debit rule captured when the item was added; reversed with the same values
    keg_id = Column(BigId, ForeignKey('keg.id'), nullable=True)
    liters_per_unit = Column(Numeric(6, 3), nullable=True)
    quantity = Column(Integer, nullable=False)
    price_at_sale = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    order = relationship('Order', back_populates='items')
    variant = relationship('ProductVariant')
    keg = relationship('Keg')

    def __repr__(self):
        return f"<OrderItem(id={self.id}, variant_id={self.variant_id}, quantity={self.quantity})>"

    @property
    def is_keg_linked(self):
        return self.keg_id is not None

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'variant_id': self.variant_id,
            'keg_id': self.keg_id,
            'quantity': self.quantity,
            'price_at_sale': str(self.price_at_sale),
            'subtotal': str(self.subtotal),
            'notes': self.notes,
        }
