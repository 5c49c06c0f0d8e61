"""
Promotion eligibility and discount engine.

Evaluation is read-only: given an order total and a point in time it filters
the promotion catalog and ranks the applicable discounts. The ranking is a
best-effort recommendation, not a reservation; usage is only counted when an
order is finalized (see ``increment_promotion_usage``).
"""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, List, Dict, Any, Optional

from sqlalchemy import update, select, or_
from sqlalchemy.orm import Session

from taproom.exceptions import InvalidArgumentError, NotFoundError, ConflictError
from taproom.models import Promotion, PromotionType, Weekday
from taproom.utils.number_format import CENT, parse_amount, to_money

logger = logging.getLogger(__name__)


def is_promotion_eligible(promotion: Promotion, order_total: Decimal, now: datetime) -> bool:
    """
    Check every eligibility rule for one promotion.

    Raises:
        ValueError: the stored weekday set is malformed
    """
    if not promotion.active:
        return False

    today = now.date()
    if not (promotion.valid_from <= today <= promotion.valid_until):
        return False

    if promotion.min_amount is not None and promotion.min_amount > order_total:
        return False

    if not promotion.has_uses_left:
        return False

    current_time = now.time()
    if promotion.start_time is not None and current_time < promotion.start_time:
        return False
    if promotion.end_time is not None and current_time > promotion.end_time:
        return False

    weekdays = promotion.weekdays
    if weekdays is not None and Weekday.from_date(today) not in weekdays:
        return False

    return True


def calculate_discount(promotion: Promotion, order_total: Decimal) -> Decimal:
    """
    Discount granted by ``promotion`` on ``order_total``.

    - percentage:   value% of the total, capped by max_discount when set
    - fixed_amount: value, never more than the total
    - buy_x_get_y:  0 (item-level semantics are not defined for a plain total)
    """
    order_total = Decimal(str(order_total))
    value = Decimal(str(promotion.value))

    if promotion.type == PromotionType.PERCENTAGE:
        discount = value * order_total / Decimal('100')
        if promotion.max_discount is not None:
            discount = min(discount, Decimal(str(promotion.max_discount)))
        return to_money(discount)

    if promotion.type == PromotionType.FIXED_AMOUNT:
        if value >= order_total:
            # Never discount more than the total itself
            return order_total.quantize(CENT, rounding=ROUND_DOWN)
        return to_money(value)

    return Decimal('0.00')


def rank_promotions(
    promotions: Iterable[Promotion],
    order_total: Decimal,
    now: datetime
) -> List[Dict[str, Any]]:
    """
    Filter ``promotions`` down to the eligible ones and rank them.

    Sorted by calculated discount descending, ties by promotion id ascending.
    A row with a malformed weekday set is skipped, never fatal.
    """
    order_total = Decimal(str(order_total))
    ranked = []
    for promotion in promotions:
        try:
            eligible = is_promotion_eligible(promotion, order_total, now)
        except ValueError as e:
            logger.warning(f"[PROMO] Skipping promotion {promotion.id} ('{promotion.name}'): {e}")
            continue
        if not eligible:
            continue
        ranked.append({
            'promotion': promotion,
            'calculated_discount': calculate_discount(promotion, order_total)
        })

    ranked.sort(key=lambda entry: (-entry['calculated_discount'], entry['promotion'].id))
    return ranked


def get_valid_promotions(
    session: Session,
    order_total,
    now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Ranked list of promotions applicable to ``order_total`` at ``now``.

    Each entry is ``{'promotion': Promotion, 'calculated_discount': Decimal}``;
    the first one is the best discount. Performs no writes.

    Raises:
        InvalidArgumentError: order_total is not a non-negative amount
    """
    order_total = _parse_total(order_total)
    now = now or datetime.now()
    today = now.date()

    # Coarse prefilter in SQL; the exact rules run in rank_promotions
    candidates = session.query(Promotion).filter(
        Promotion.active == True,  # noqa: E712
        Promotion.valid_from <= today,
        Promotion.valid_until >= today,
        or_(Promotion.max_uses.is_(None), Promotion.current_uses < Promotion.max_uses)
    ).order_by(Promotion.id).all()

    return rank_promotions(candidates, order_total, now)


def get_best_promotion(
    session: Session,
    order_total,
    now: Optional[datetime] = None
) -> Optional[Dict[str, Any]]:
    """Top-ranked entry of ``get_valid_promotions`` or None."""
    ranked = get_valid_promotions(session, order_total, now)
    return ranked[0] if ranked else None


def increment_promotion_usage(session: Session, promotion_id: int) -> None:
    """
    Count one use of a promotion with a single guarded UPDATE.

    Does not commit: callers run it inside the transaction that finalizes
    the order so the counter and the order move together.

    Raises:
        NotFoundError: promotion missing
        ConflictError: max_uses already reached
    """
    result = session.execute(
        update(Promotion)
        .where(
            Promotion.id == promotion_id,
            or_(Promotion.max_uses.is_(None), Promotion.current_uses < Promotion.max_uses)
        )
        .values(current_uses=Promotion.current_uses + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        exists = session.execute(
            select(Promotion.id).where(Promotion.id == promotion_id)
        ).scalar()
        if exists is None:
            raise NotFoundError(f'Promotion {promotion_id} not found')
        raise ConflictError(f'Promotion {promotion_id} has reached its usage limit')

    logger.info(f"[PROMO] Promotion {promotion_id} usage +1")


def _parse_total(order_total) -> Decimal:
    try:
        return parse_amount(order_total)
    except ValueError as e:
        raise InvalidArgumentError(str(e), payload={'field': 'order_total'})
