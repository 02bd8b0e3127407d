# Overview: Flask API routes for the admin back office; catalog, orders, users and dashboard.

"""
Admin routes. Every endpoint requires a bearer token with role ADMIN.

Deletes are soft: products and categories are disabled, never removed, so
past orders keep their product references.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_admin, require_auth
from ..errors import error_response
from ..services import get_services
from ..validation import (
    CATEGORY_POLICY,
    PRODUCT_POLICY,
    ValidationError,
    coerce_bool,
    coerce_non_negative_int,
    coerce_role,
    require_fields,
    validate_payload,
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@require_auth
@require_admin
def _admin_only():
    return None


@admin_bp.before_request
def guard_admin():
    """Runs the guards for every route in this blueprint."""
    # CORS preflight carries no credentials
    if request.method == "OPTIONS":
        return None
    return _admin_only()


def _int_arg(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return coerce_non_negative_int(name, raw)


# Dashboard

@admin_bp.get("/dashboard/stats")
def dashboard_stats():
    return jsonify(get_services().reports.dashboard_stats())


@admin_bp.get("/dashboard/revenue/monthly")
def monthly_revenue():
    return jsonify(get_services().reports.monthly_revenue())


@admin_bp.get("/dashboard/products/top")
def top_products():
    return jsonify(get_services().reports.top_products(_int_arg("limit")))


@admin_bp.get("/dashboard/orders/status")
def order_status_counts():
    return jsonify(get_services().reports.order_status_counts())


@admin_bp.get("/dashboard/products/low-stock")
def low_stock_products():
    return jsonify(get_services().reports.low_stock_products(_int_arg("threshold")))


# Products

@admin_bp.get("/products")
def list_products():
    catalog = get_services().catalog
    return jsonify(catalog.product_views(catalog.list_products(include_disabled=True)))


@admin_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    catalog = get_services().catalog
    result = catalog.get_product(product_id, include_disabled=True)
    if not result.ok:
        return error_response(result.error)
    return jsonify(catalog.product_view(result.value))


@admin_bp.post("/products")
def create_product():
    fields = validate_payload(payload=request.get_json(silent=True), policy=PRODUCT_POLICY, partial=False)
    catalog = get_services().catalog
    result = catalog.create_product(fields)
    if not result.ok:
        return error_response(result.error)
    return jsonify(catalog.product_view(result.value)), 201


@admin_bp.put("/products/<int:product_id>")
def update_product(product_id: int):
    changes = validate_payload(payload=request.get_json(silent=True), policy=PRODUCT_POLICY, partial=True)
    catalog = get_services().catalog
    result = catalog.update_product(product_id, changes)
    if not result.ok:
        return error_response(result.error)
    return jsonify(catalog.product_view(result.value))


@admin_bp.delete("/products/<int:product_id>")
def delete_product(product_id: int):
    result = get_services().catalog.delete_product(product_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify({"status": "success", "message": "Product deleted successfully"})


# Categories

@admin_bp.get("/categories")
def list_categories():
    categories = get_services().catalog.list_categories(include_disabled=True)
    return jsonify([c.to_dict() for c in categories])


@admin_bp.post("/categories")
def create_category():
    fields = validate_payload(payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=False)
    result = get_services().catalog.create_category(fields)
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict()), 201


@admin_bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    changes = validate_payload(payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=True)
    result = get_services().catalog.update_category(category_id, changes)
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())


@admin_bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    result = get_services().catalog.delete_category(category_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify({"status": "success", "message": "Category deleted successfully"})


# Orders

@admin_bp.get("/orders")
def list_orders():
    orders = get_services().orders
    return jsonify([orders.admin_view(order) for order in orders.list_orders()])


@admin_bp.get("/orders/<int:order_id>")
def get_order(order_id: int):
    orders = get_services().orders
    result = orders.get_order(order_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify(orders.admin_view(result.value))


@admin_bp.patch("/orders/<int:order_id>/status")
def update_order_status(order_id: int):
    data = require_fields(request.get_json(silent=True), "status")
    orders = get_services().orders
    result = orders.update_order_status(order_id, data["status"])
    if not result.ok:
        return error_response(result.error)
    return jsonify(orders.admin_view(result.value))


# Users

@admin_bp.get("/users")
def list_users():
    return jsonify([user.to_dict() for user in get_services().auth.list_users()])


@admin_bp.get("/users/<int:user_id>")
def get_user(user_id: int):
    result = get_services().auth.get_user(user_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())


@admin_bp.patch("/users/<int:user_id>/enable")
def set_user_enabled(user_id: int):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "enabled" not in data:
        raise ValidationError("Missing required fields: enabled")
    result = get_services().auth.set_enabled(user_id, coerce_bool("enabled", data["enabled"]))
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())


@admin_bp.patch("/users/<int:user_id>/role")
def set_user_role(user_id: int):
    data = require_fields(request.get_json(silent=True), "role")
    result = get_services().auth.set_role(user_id, coerce_role("role", data["role"]))
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())
