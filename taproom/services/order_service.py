"""Order lifecycle service: creation, status changes, finalization and removal."""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from taproom.database import atomic
from taproom.exceptions import InvalidArgumentError, BusinessLogicError, NotFoundError, ConflictError
from taproom.models import Order, OrderItem, OrderStatus, Promotion
from taproom.services.order_item_service import lock_open_order, refresh_order_total, reverse_order_item
from taproom.services.promotion_service import (
    is_promotion_eligible, calculate_discount, increment_promotion_usage
)

logger = logging.getLogger(__name__)


def create_order(session: Session, notes: Optional[str] = None) -> Order:
    """Open a new, empty order."""
    with atomic(session, 'Create order'):
        order = Order(
            status=OrderStatus.PENDING,
            total=Decimal('0.00'),
            discount_amount=Decimal('0.00'),
            notes=notes
        )
        session.add(order)
        session.flush()

    logger.info(f"[ORDER] #{order.id} created")
    return order


def update_order_status(session: Session, order_id: int, status: Union[str, OrderStatus]) -> Order:
    """
    Move an order along PENDING -> IN_PREPARATION -> READY -> SERVED -> PAID.

    Steps may be skipped but never undone. CANCELLED is reachable from any
    open status. PAID goes through ``finalize_order`` (no promotion).

    Raises:
        InvalidArgumentError: unknown status
        NotFoundError: order missing
        BusinessLogicError: order closed, or the transition goes backwards
    """
    new_status = parse_status(status)

    if new_status == OrderStatus.PAID:
        return finalize_order(session, order_id)

    with atomic(session, 'Update order status'):
        order = lock_open_order(session, order_id)
        if not order.can_transition_to(new_status):
            raise BusinessLogicError(
                f'Cannot move order {order_id} from {order.status.value} to {new_status.value}'
            )
        old_status = order.status
        order.status = new_status

    logger.info(f"[ORDER] #{order_id}: {old_status.value} -> {new_status.value}")
    return order


def finalize_order(
    session: Session,
    order_id: int,
    promotion_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Order:
    """
    Close an order as PAID, optionally applying a promotion.

    The promotion is re-validated at ``now`` against the recomputed total and
    its usage counter is incremented in the same transaction that marks the
    order paid, so a use is counted exactly once per finalized order.

    Raises:
        NotFoundError: order or promotion missing
        BusinessLogicError: order closed, or promotion not applicable
        ConflictError: promotion usage limit reached meanwhile
    """
    now = now or datetime.now()

    with atomic(session, 'Finalize order'):
        order = lock_open_order(session, order_id)
        refresh_order_total(session, order)

        discount = Decimal('0.00')
        if promotion_id is not None:
            promotion = session.query(Promotion).filter(
                Promotion.id == promotion_id
            ).populate_existing().first()
            if not promotion:
                raise NotFoundError(f'Promotion {promotion_id} not found')

            if not promotion.has_uses_left:
                raise ConflictError(f'Promotion {promotion_id} has reached its usage limit')
            try:
                eligible = is_promotion_eligible(promotion, order.total, now)
            except ValueError as e:
                raise BusinessLogicError(f'Promotion {promotion_id} is misconfigured: {e}')
            if not eligible:
                raise BusinessLogicError(f'Promotion "{promotion.name}" does not apply to this order')

            discount = calculate_discount(promotion, order.total)
            increment_promotion_usage(session, promotion_id)
            order.promotion_id = promotion_id

        order.discount_amount = discount
        order.status = OrderStatus.PAID
        order.paid_at = now

    logger.info(f"[ORDER] #{order_id} paid (promotion={promotion_id}, discount={discount})")
    return order


def delete_order(session: Session, order_id: int) -> dict:
    """
    Delete an unpaid order, returning every item's stock and keg volume.

    Raises:
        NotFoundError: order missing
        BusinessLogicError: order already paid
    """
    with atomic(session, 'Delete order'):
        order = session.query(Order).filter(
            Order.id == order_id
        ).with_for_update().populate_existing().first()
        if not order:
            raise NotFoundError(f'Order {order_id} not found')
        if order.status == OrderStatus.PAID:
            raise BusinessLogicError(f'Order {order_id} is already paid and cannot be deleted')

        items = session.query(OrderItem).filter(
            OrderItem.order_id == order_id
        ).order_by(
            # Ledger rows are touched in one global sequence across concurrent deletes
            OrderItem.variant_id, OrderItem.keg_id, OrderItem.id
        ).with_for_update().all()

        reversed_items = [reverse_order_item(session, item) for item in items]
        session.delete(order)

    logger.info(f"[ORDER] #{order_id} deleted, {len(reversed_items)} items reversed")
    return {
        'order_id': order_id,
        'reversed_items': reversed_items
    }


def get_order_summary(session: Session, order_id: int) -> dict:
    """Order with its items, ready for serialization."""
    order = session.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError(f'Order {order_id} not found')
    return order.to_dict(include_items=True)


def parse_status(status: Union[str, OrderStatus]) -> OrderStatus:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(str(status).strip().upper())
    except ValueError:
        valid = ', '.join(s.value for s in OrderStatus)
        raise InvalidArgumentError(f'Invalid status {status!r}. Valid statuses: {valid}')
