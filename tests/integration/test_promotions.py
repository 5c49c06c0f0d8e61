"""
Integration tests for promotion lookup against the catalog table.
"""

import pytest
from datetime import timedelta, time
from decimal import Decimal
from taproom.exceptions import InvalidArgumentError, NotFoundError, ConflictError
from taproom.models import Promotion, PromotionType
from taproom.services.promotion_service import (
    get_valid_promotions, get_best_promotion, increment_promotion_usage
)


class TestGetValidPromotions:
    """Tests for get_valid_promotions."""

    def test_expired_yesterday_excluded(self, session, make_promotion, now):
        make_promotion(name='Last week', valid_until=now.date() - timedelta(days=1))
        current = make_promotion(name='Current')

        ranked = get_valid_promotions(session, Decimal('20.00'), now)

        assert [entry['promotion'].id for entry in ranked] == [current.id]

    def test_min_amount_boundary(self, session, make_promotion, now):
        promotion = make_promotion(min_amount=Decimal('50'))

        assert get_valid_promotions(session, Decimal('49.99'), now) == []
        ranked = get_valid_promotions(session, Decimal('50.00'), now)
        assert [entry['promotion'].id for entry in ranked] == [promotion.id]

    def test_sub_cent_total_just_under_min_amount(self, session, make_promotion, now):
        make_promotion(min_amount=Decimal('50'))

        assert get_valid_promotions(session, '49.995', now) == []

    def test_discount_computed_on_exact_total(self, session, make_promotion, now):
        make_promotion(value=Decimal('10'))

        ranked = get_valid_promotions(session, '50.049', now)

        # 5.0049, not 10% of a total rounded up to 50.05
        assert ranked[0]['calculated_discount'] == Decimal('5.00')

    def test_ranked_by_discount(self, session, make_promotion, now):
        five = make_promotion(name='Five off', type=PromotionType.FIXED_AMOUNT, value=Decimal('5'))
        eight = make_promotion(name='Eight off', type=PromotionType.FIXED_AMOUNT, value=Decimal('8'))

        ranked = get_valid_promotions(session, '40.00', now)

        assert [entry['promotion'].id for entry in ranked] == [eight.id, five.id]
        assert ranked[0]['calculated_discount'] == Decimal('8.00')

    def test_capped_percentage(self, session, make_promotion, now):
        make_promotion(value=Decimal('20'), max_discount=Decimal('5'))

        best = get_best_promotion(session, Decimal('100'), now)

        assert best['calculated_discount'] == Decimal('5.00')

    def test_filters_inactive_exhausted_and_off_hours(self, session, make_promotion, now):
        make_promotion(name='Off', active=False)
        make_promotion(name='Used up', max_uses=3, current_uses=3)
        make_promotion(name='Lunch', start_time=time(11, 30), end_time=time(14, 30))
        make_promotion(name='Weekend', weekdays=['saturday', 'sunday'])
        friday = make_promotion(name='Friday night', weekdays=['friday'], start_time=time(18, 0))

        ranked = get_valid_promotions(session, Decimal('30'), now)

        assert [entry['promotion'].id for entry in ranked] == [friday.id]

    def test_malformed_row_does_not_block_others(self, session, make_promotion, now):
        make_promotion(name='Broken', days_of_week='fri,sat')
        good = make_promotion(name='Good')

        ranked = get_valid_promotions(session, Decimal('30'), now)

        assert [entry['promotion'].id for entry in ranked] == [good.id]

    def test_no_promotions(self, session, now):
        assert get_valid_promotions(session, Decimal('30'), now) == []
        assert get_best_promotion(session, Decimal('30'), now) is None

    @pytest.mark.parametrize('total', ['-1', 'abc', None])
    def test_invalid_total(self, session, now, total):
        with pytest.raises(InvalidArgumentError):
            get_valid_promotions(session, total, now)

    def test_lookup_performs_no_writes(self, session, make_promotion, now):
        promotion = make_promotion(max_uses=10)

        get_valid_promotions(session, Decimal('30'), now)
        session.commit()

        assert session.get(Promotion, promotion.id).current_uses == 0


class TestIncrementPromotionUsage:
    """Tests for increment_promotion_usage."""

    def test_counts_one_use(self, session, make_promotion):
        promotion = make_promotion(max_uses=2)

        increment_promotion_usage(session, promotion.id)
        session.commit()

        assert session.get(Promotion, promotion.id).current_uses == 1

    def test_limit_reached(self, session, make_promotion):
        promotion = make_promotion(max_uses=2, current_uses=2)

        with pytest.raises(ConflictError):
            increment_promotion_usage(session, promotion.id)
        session.rollback()

        assert session.get(Promotion, promotion.id).current_uses == 2

    def test_unlimited(self, session, make_promotion):
        promotion = make_promotion(max_uses=None, current_uses=41)

        increment_promotion_usage(session, promotion.id)
        session.commit()

        assert session.get(Promotion, promotion.id).current_uses == 42

    def test_unknown_promotion(self, session):
        with pytest.raises(NotFoundError):
            increment_promotion_usage(session, 9999)
