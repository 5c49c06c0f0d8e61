"""Product Variant model."""
from sqlalchemy import Column, String, Boolean, Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taproom.database import Base, BigId


class ProductVariant(Base):
    """Sellable configuration of a product (e.g. a 0.4 L draught pour)."""

    __tablename__ = 'product_variant'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock_qty = Column(Integer, nullable=False, default=0)
    keg_id = Column(BigId, ForeignKey('keg.id'), nullable=True)
    # Liters drawn from the keg per unit sold; NULL means the configured default
    serving_volume = Column(Numeric(6, 3), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    keg = relationship('Keg', back_populates='variants')

    def __repr__(self):
        return f"<ProductVariant(id={self.id}, name='{self.name}', stock_qty={self.stock_qty})>"

    @property
    def is_keg_linked(self):
        return self.keg_id is not None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': str(self.price),
            'stock_qty': self.stock_qty,
            'keg_id': self.keg_id,
            'serving_volume': str(self.serving_volume) if self.serving_volume is not None else None,
            'active': self.active,
        }
