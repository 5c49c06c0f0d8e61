"""
Order line-item service with inventory reconciliation.

Every mutation of an order item cascades into the variant stock ledger and,
for draught variants, into the keg ledger. The item row, the ledger
adjustments and the order total move together inside one transaction:
either all of them are committed or none is.

Accounting rule (applied on add, adjusted on update, reversed on delete):
    variant.stock_qty     -= item.quantity
    keg.remaining_liters  -= item.quantity * item.liters_per_unit   (keg-linked only)

The keg reference and liters-per-unit are copied onto the item when it is
added, so later changes to the variant never skew the reversal.
"""
import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from taproom.database import atomic
from taproom.exceptions import InvalidArgumentError, BusinessLogicError, NotFoundError
from taproom.models import Order, OrderItem, ProductVariant, StockMovementReason
from taproom.services import ledger_service
from taproom.utils.number_format import parse_money, parse_quantity, to_money

logger = logging.getLogger(__name__)

DEFAULT_SERVING_VOLUME = Decimal('0.5')


def add_order_item(
    session: Session,
    order_id: int,
    variant_id: int,
    quantity: int,
    price_at_sale,
    notes: Optional[str] = None,
    allow_negative_stock: bool = True,
    default_serving_volume: Decimal = DEFAULT_SERVING_VOLUME
) -> OrderItem:
    """
    Add a line item to an open order and debit the ledgers.

    Args:
        session: SQLAlchemy session (committed on success, rolled back on failure)
        order_id: Owning order
        variant_id: Variant sold
        quantity: Units sold (> 0)
        price_at_sale: Unit price snapshot (>= 0)
        notes: Free text for the bar/kitchen
        allow_negative_stock: When False, refuse to drive stock or keg below zero
        default_serving_volume: Liters per unit for keg-linked variants without their own

    Returns:
        The created OrderItem

    Raises:
        InvalidArgumentError: quantity or price invalid
        NotFoundError: order or variant missing
        BusinessLogicError: order already paid or cancelled
        InsufficientStockError: negative stock refused by policy
        ConflictError / InternalError: storage failure (nothing persisted)
    """
    quantity, price = _validate_line(quantity, price_at_sale)

    with atomic(session, 'Add order item'):
        order = lock_open_order(session, order_id)

        variant = session.execute(
            select(ProductVariant.keg_id, ProductVariant.serving_volume)
            .where(ProductVariant.id == variant_id)
        ).first()
        if variant is None:
            raise NotFoundError(f'Product variant {variant_id} not found')

        liters_per_unit = None
        if variant.keg_id is not None:
            liters_per_unit = Decimal(str(variant.serving_volume or default_serving_volume))

        item = OrderItem(
            order_id=order.id,
            variant_id=variant_id,
            keg_id=variant.keg_id,
            liters_per_unit=liters_per_unit,
            quantity=quantity,
            price_at_sale=price,
            subtotal=to_money(quantity * price),
            notes=notes
        )
        session.add(item)
        session.flush()

        _apply_ledgers(
            session, item, -quantity,
            reason=StockMovementReason.SALE,
            allow_negative=allow_negative_stock
        )
        refresh_order_total(session, order)

    logger.info(f"[ORDER] #{order_id}: added item {item.id} (variant {variant_id} x{quantity} @ {price})")
    return item


def update_order_item(
    session: Session,
    item_id: int,
    quantity: int,
    price_at_sale,
    allow_negative_stock: bool = True
) -> OrderItem:
    """
    Change an item's quantity and price, adjusting the ledgers by the difference.

    A zero quantity delta still runs both adjustments (as no-ops) so the
    accounting rule stays uniform.

    Raises:
        InvalidArgumentError: quantity or price invalid
        NotFoundError: item missing
        BusinessLogicError: order already paid or cancelled
        InsufficientStockError: negative stock refused by policy
        ConflictError / InternalError: storage failure (nothing persisted)
    """
    quantity, price = _validate_line(quantity, price_at_sale)

    with atomic(session, 'Update order item'):
        order, item = _lock_item_with_order(session, item_id)

        delta = quantity - item.quantity
        item.quantity = quantity
        item.price_at_sale = price
        item.subtotal = to_money(quantity * price)
        session.flush()

        _apply_ledgers(
            session, item, -delta,
            reason=StockMovementReason.SALE_ADJUST,
            allow_negative=allow_negative_stock
        )
        refresh_order_total(session, order)

    logger.info(f"[ORDER] #{item.order_id}: item {item_id} now x{quantity} @ {price} (delta {delta:+d})")
    return item


def delete_order_item(session: Session, item_id: int) -> dict:
    """
    Remove an item from its order and restore the ledgers.

    Returns:
        dict with the restored quantities

    Raises:
        NotFoundError: item missing
        BusinessLogicError: order already paid or cancelled
        ConflictError / InternalError: storage failure (nothing persisted)
    """
    with atomic(session, 'Delete order item'):
        order, item = _lock_item_with_order(session, item_id)
        result = reverse_order_item(session, item)
        refresh_order_total(session, order)

    logger.info(f"[ORDER] #{result['order_id']}: removed item {item_id}, restored {result['restored_qty']} units")
    return result


def reverse_order_item(session: Session, item: OrderItem) -> dict:
    """
    Restore the ledgers for ``item`` and delete its row.

    Runs inside the caller's transaction; the item must already be locked.
    """
    restored_liters = None
    if item.keg_id is not None:
        restored_liters = item.quantity * item.liters_per_unit

    _apply_ledgers(session, item, item.quantity, reason=StockMovementReason.SALE_REVERSAL)
    result = {
        'item_id': item.id,
        'order_id': item.order_id,
        'variant_id': item.variant_id,
        'restored_qty': item.quantity,
        'keg_id': item.keg_id,
        'restored_liters': restored_liters,
    }
    session.delete(item)
    session.flush()
    return result


# =====================================================
# HELPERS (shared with order_service)
# =====================================================

def _validate_line(quantity, price_at_sale) -> Tuple[int, Decimal]:
    try:
        quantity = parse_quantity(quantity)
    except ValueError as e:
        raise InvalidArgumentError(str(e), payload={'field': 'quantity'})
    try:
        price = parse_money(price_at_sale)
    except ValueError as e:
        raise InvalidArgumentError(str(e), payload={'field': 'price_at_sale'})
    return quantity, price


def lock_open_order(session: Session, order_id: int) -> Order:
    """Lock the order row FOR UPDATE and make sure it still accepts items."""
    order = session.query(Order).filter(
        Order.id == order_id
    ).with_for_update().populate_existing().first()

    if not order:
        raise NotFoundError(f'Order {order_id} not found')
    if order.status.is_terminal:
        raise BusinessLogicError(
            f'Order {order_id} is {order.status.value.lower()} and can no longer be modified'
        )
    return order


def _lock_item_with_order(session: Session, item_id: int) -> Tuple[Order, OrderItem]:
    """
    Lock the item's order, then the item itself.

    Locks are always taken order first, item second, the same sequence
    order-level operations use, so the two never wait on each other in a cycle.
    """
    order_id = session.execute(
        select(OrderItem.order_id).where(OrderItem.id == item_id)
    ).scalar()
    if order_id is None:
        raise NotFoundError(f'Order item {item_id} not found')

    order = lock_open_order(session, order_id)

    item = session.query(OrderItem).filter(
        OrderItem.id == item_id,
        OrderItem.order_id == order_id
    ).with_for_update().populate_existing().first()
    if not item:
        # Deleted between the lookup and the lock
        raise NotFoundError(f'Order item {item_id} not found')
    return order, item


def _apply_ledgers(
    session: Session,
    item: OrderItem,
    unit_delta: int,
    reason: StockMovementReason,
    allow_negative: bool = True
) -> None:
    """Move stock (and keg volume, when linked) by ``unit_delta`` units of ``item``."""
    ledger_service.adjust_variant_stock(
        session, item.variant_id, unit_delta,
        allow_negative=allow_negative,
        reason=reason,
        order_id=item.order_id,
        order_item_id=item.id
    )
    if item.keg_id is not None:
        ledger_service.adjust_keg_volume(
            session, item.keg_id, unit_delta * Decimal(str(item.liters_per_unit)),
            allow_negative=allow_negative,
            reason=reason,
            order_id=item.order_id,
            order_item_id=item.id
        )


def refresh_order_total(session: Session, order: Order) -> None:
    """Recompute the cached order total from its item subtotals."""
    session.flush()
    total = session.execute(
        select(func.coalesce(func.sum(OrderItem.subtotal), 0))
        .where(OrderItem.order_id == order.id)
    ).scalar()
    order.total = to_money(total)
