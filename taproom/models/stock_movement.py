"""Stock Movement model."""
from sqlalchemy import Column, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from taproom.database import Base, BigId
import enum


class StockMovementReason(enum.Enum):
    """Why a ledger was adjusted."""
    SALE = "SALE"
    SALE_ADJUST = "SALE_ADJUST"
    SALE_REVERSAL = "SALE_REVERSAL"


class StockMovement(Base):
    """Audit trail of ledger adjustments (one row per non-zero delta)."""

    __tablename__ = 'stock_movement'

    id = Column(BigId, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    variant_id = Column(BigId, ForeignKey('product_variant.id'), nullable=True)
    keg_id = Column(BigId, ForeignKey('keg.id'), nullable=True)
    # Signed delta: units for variants, liters for kegs
    qty = Column(Numeric(10, 3), nullable=False)
    reason = Column(Enum(StockMovementReason, name='stock_movement_reason'), nullable=False)
    # Plain references: the item row may be gone by the time the movement is read
    order_id = Column(BigId, nullable=True)
    order_item_id = Column(BigId, nullable=True)

    def __repr__(self):
        target = f"variant_id={self.variant_id}" if self.variant_id else f"keg_id={self.keg_id}"
        return f"<StockMovement(id={self.id}, {target}, qty={self.qty}, reason={self.reason.value})>"
