"""
Stock and keg ledgers.

Both ledgers apply relative adjustments as a single UPDATE statement
(``col = col + :delta``) so concurrent callers never lose a decrement.
Neither function commits: they run inside the caller's unit of work.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taproom.exceptions import NotFoundError, InsufficientStockError
from taproom.models import ProductVariant, Keg, StockMovement, StockMovementReason

logger = logging.getLogger(__name__)


def adjust_variant_stock(
    session: Session,
    variant_id: int,
    delta: int,
    allow_negative: bool = True,
    reason: Optional[StockMovementReason] = None,
    order_id: Optional[int] = None,
    order_item_id: Optional[int] = None
) -> None:
    """
    Apply ``stock_qty += delta`` to a product variant.

    Raises:
        NotFoundError: variant does not exist
        InsufficientStockError: allow_negative is False and the result would be < 0
    """
    stmt = update(ProductVariant).where(ProductVariant.id == variant_id)
    if not allow_negative and delta < 0:
        stmt = stmt.where(ProductVariant.stock_qty + delta >= 0)
    stmt = stmt.values(stock_qty=ProductVariant.stock_qty + delta)

    result = session.execute(stmt.execution_options(synchronize_session=False))

    if result.rowcount == 0:
        row = session.execute(
            select(ProductVariant.name, ProductVariant.stock_qty).where(ProductVariant.id == variant_id)
        ).first()
        if row is None:
            raise NotFoundError(f'Product variant {variant_id} not found')
        raise InsufficientStockError(row.name, -delta, row.stock_qty)

    if delta and reason is not None:
        session.add(StockMovement(
            variant_id=variant_id,
            qty=delta,
            reason=reason,
            order_id=order_id,
            order_item_id=order_item_id
        ))

    logger.info(f"[LEDGER] variant {variant_id} stock {delta:+d}")


def adjust_keg_volume(
    session: Session,
    keg_id: int,
    delta_liters: Decimal,
    allow_negative: bool = True,
    reason: Optional[StockMovementReason] = None,
    order_id: Optional[int] = None,
    order_item_id: Optional[int] = None
) -> None:
    """
    Apply ``remaining_liters += delta_liters`` to a keg.

    Raises:
        NotFoundError: keg does not exist
        InsufficientStockError: allow_negative is False and the result would be < 0
    """
    delta_liters = Decimal(str(delta_liters))

    stmt = update(Keg).where(Keg.id == keg_id)
    if not allow_negative and delta_liters < 0:
        stmt = stmt.where(Keg.remaining_liters + delta_liters >= 0)
    stmt = stmt.values(remaining_liters=Keg.remaining_liters + delta_liters)

    result = session.execute(stmt.execution_options(synchronize_session=False))

    if result.rowcount == 0:
        row = session.execute(
            select(Keg.name, Keg.remaining_liters).where(Keg.id == keg_id)
        ).first()
        if row is None:
            raise NotFoundError(f'Keg {keg_id} not found')
        raise InsufficientStockError(f'keg "{row.name}"', -delta_liters, Decimal(str(row.remaining_liters)))

    if delta_liters and reason is not None:
        session.add(StockMovement(
            keg_id=keg_id,
            qty=delta_liters,
            reason=reason,
            order_id=order_id,
            order_item_id=order_item_id
        ))

    logger.info(f"[LEDGER] keg {keg_id} remaining {delta_liters:+} L")
