# Overview: Public catalog routes (products and categories); read-only.

from flask import Blueprint, jsonify, request

from ..errors import error_response
from ..services import get_services
from ..validation import coerce_positive_int

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@products_bp.get("")
def list_products():
    """
    List enabled products.

    Query params:
    - categoryId: int (optional)
    - search: str (optional) - case-insensitive match on name/description
    """
    raw_category = request.args.get("categoryId")
    category_id = coerce_positive_int("categoryId", raw_category) if raw_category else None
    search = request.args.get("search") or None

    catalog = get_services().catalog
    products = catalog.list_products(category_id=category_id, search=search)
    return jsonify(catalog.product_views(products))


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    catalog = get_services().catalog
    result = catalog.get_product(product_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify(catalog.product_view(result.value))


@categories_bp.get("")
def list_categories():
    categories = get_services().catalog.list_categories()
    return jsonify([c.to_dict() for c in categories])


@categories_bp.get("/<int:category_id>")
def get_category(category_id: int):
    result = get_services().catalog.get_category(category_id)
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.value.to_dict())
