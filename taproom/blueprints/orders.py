"""Orders blueprint: JSON endpoints for orders and their line items."""
from flask import Blueprint, request, jsonify, current_app

from taproom.database import get_session
from taproom.exceptions import InvalidArgumentError
from taproom.services import order_item_service, order_service

orders_bp = Blueprint('orders', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgumentError('Request body must be a JSON object')
    return data


def _require(data: dict, *fields):
    missing = [f for f in fields if data.get(f) is None]
    if missing:
        raise InvalidArgumentError(f'Missing required fields: {", ".join(missing)}', payload={'fields': missing})


def _as_id(value, field: str) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(f'{field} must be an integer id')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f'{field} must be an integer id')


def _serialize_reversal(result: dict) -> dict:
    rv = dict(result)
    if rv.get('restored_liters') is not None:
        rv['restored_liters'] = str(rv['restored_liters'])
    return rv


@orders_bp.route('/orders', methods=['POST'])
def create_order():
    data = _json_body()
    order = order_service.create_order(get_session(), notes=data.get('notes'))
    return jsonify(order.to_dict(include_items=True)), 201


@orders_bp.route('/orders/<int:order_id>', methods=['GET'])
def get_order(order_id):
    return jsonify(order_service.get_order_summary(get_session(), order_id))


@orders_bp.route('/orders/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    result = order_service.delete_order(get_session(), order_id)
    return jsonify({
        'status': 'success',
        'order_id': result['order_id'],
        'reversed_items': [_serialize_reversal(r) for r in result['reversed_items']]
    })


@orders_bp.route('/orders/<int:order_id>/status', methods=['PATCH'])
def update_order_status(order_id):
    data = _json_body()
    _require(data, 'status')
    order = order_service.update_order_status(get_session(), order_id, data['status'])
    return jsonify(order.to_dict())


@orders_bp.route('/orders/<int:order_id>/finalize', methods=['POST'])
def finalize_order(order_id):
    data = _json_body()
    promotion_id = data.get('promotion_id')
    if promotion_id is not None:
        promotion_id = _as_id(promotion_id, 'promotion_id')
    order = order_service.finalize_order(get_session(), order_id, promotion_id=promotion_id)
    return jsonify(order.to_dict(include_items=True))


@orders_bp.route('/orders/<int:order_id>/items', methods=['POST'])
def add_order_item(order_id):
    data = _json_body()
    _require(data, 'variant_id', 'quantity', 'price_at_sale')
    item = order_item_service.add_order_item(
        get_session(),
        order_id=order_id,
        variant_id=_as_id(data['variant_id'], 'variant_id'),
        quantity=data['quantity'],
        price_at_sale=data['price_at_sale'],
        notes=data.get('notes'),
        allow_negative_stock=current_app.config.get('ALLOW_NEGATIVE_STOCK', True),
        default_serving_volume=current_app.config.get(
            'DEFAULT_SERVING_VOLUME', order_item_service.DEFAULT_SERVING_VOLUME
        )
    )
    return jsonify(item.to_dict()), 201


@orders_bp.route('/order-items/<int:item_id>', methods=['PATCH'])
def update_order_item(item_id):
    data = _json_body()
    _require(data, 'quantity', 'price_at_sale')
    item = order_item_service.update_order_item(
        get_session(),
        item_id=item_id,
        quantity=data['quantity'],
        price_at_sale=data['price_at_sale'],
        allow_negative_stock=current_app.config.get('ALLOW_NEGATIVE_STOCK', True)
    )
    return jsonify(item.to_dict())


@orders_bp.route('/order-items/<int:item_id>', methods=['DELETE'])
def delete_order_item(item_id):
    result = order_item_service.delete_order_item(get_session(), item_id)
    return jsonify({'status': 'success', **_serialize_reversal(result)})
