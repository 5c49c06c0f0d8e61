"""Keg model."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taproom.database import Base, BigId


class Keg(Base):
    """Bulk container tapped by one or more draught variants."""

    __tablename__ = 'keg'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    total_liters = Column(Numeric(10, 3), nullable=False)
    # Signed: sell-through past empty is reconciled later
    remaining_liters = Column(Numeric(10, 3), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    variants = relationship('ProductVariant', back_populates='keg')

    def __repr__(self):
        return f"<Keg(id={self.id}, remaining_liters={self.remaining_liters}/{self.total_liters})>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'total_liters': str(self.total_liters),
            'remaining_liters': str(self.remaining_liters),
            'active': self.active,
        }
