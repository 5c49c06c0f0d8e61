"""Models package - exports all SQLAlchemy models."""
from taproom.models.keg import Keg
from taproom.models.product_variant import ProductVariant
from taproom.models.promotion import Promotion, PromotionType, Weekday, parse_weekdays
from taproom.models.order import Order, OrderStatus, STATUS_SEQUENCE
from taproom.models.order_item import OrderItem
from taproom.models.stock_movement import StockMovement, StockMovementReason

__all__ = [
    'Keg', 'ProductVariant',
    'Promotion', 'PromotionType', 'Weekday', 'parse_weekdays',
    'Order', 'OrderStatus', 'STATUS_SEQUENCE', 'OrderItem',
    'StockMovement', 'StockMovementReason',
]
