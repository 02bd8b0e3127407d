# Overview: Flask API routes for customer orders; checkout and order history.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..errors import error_response
from ..services import get_services
from ..validation import parse_order_request

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order():
    """
    Checkout.

    Body: {items: [{productId, quantity}], shippingAddress, shippingCity,
    shippingState, shippingZipCode, shippingCountry}

    Payment is simulated: the order is created as PENDING.
    """
    lines, shipping = parse_order_request(request.get_json(silent=True))

    result = get_services().orders.place_order(g.current_user.user_id, lines, shipping)
    if not result.ok:
        return error_response(result.error)

    return jsonify(result.value.to_dict()), 201


@orders_bp.get("/my-orders")
@require_auth
def my_orders():
    orders = get_services().orders.list_orders_for_user(g.current_user.user_id)
    return jsonify([order.to_dict() for order in orders])


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order(order_id: int):
    claims = g.current_user
    result = get_services().orders.get_order_for(
        order_id,
        user_id=claims.user_id,
        is_admin=claims.is_admin,
    )
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())
