"""Promotions blueprint: read-only eligibility lookup."""
from datetime import datetime

from flask import Blueprint, request, jsonify

from taproom.database import get_session
from taproom.exceptions import InvalidArgumentError
from taproom.services.promotion_service import get_valid_promotions

promotions_bp = Blueprint('promotions', __name__, url_prefix='/promotions')


@promotions_bp.route('/valid', methods=['GET'])
def valid_promotions():
    """
    Rank the promotions applicable to an order total.

    Query params:
        total: order total (required)
        at: ISO datetime to evaluate at (defaults to now)
    """
    total = request.args.get('total')
    if total is None:
        raise InvalidArgumentError('Missing required parameter: total')

    now = None
    at = request.args.get('at')
    if at:
        try:
            now = datetime.fromisoformat(at)
        except ValueError:
            raise InvalidArgumentError(f'Invalid datetime for "at": {at!r}')

    ranked = get_valid_promotions(get_session(), total, now)
    entries = [
        {
            'promotion': entry['promotion'].to_dict(),
            'calculated_discount': str(entry['calculated_discount'])
        }
        for entry in ranked
    ]
    return jsonify({
        'promotions': entries,
        'best_discount': entries[0]['calculated_discount'] if entries else '0.00'
    })
