# Overview: Flask API routes for products, categories and stock adjustments; parses input and returns JSON responses.

"""
Product management routes, scoped to the caller's shop (X-Shop-Id).

- Read operations require VIEW_INVENTORY permission
- Write operations require MANAGE_PRODUCTS permission
- Stock adjustments require ADJUST_INVENTORY permission
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..models import Product, STOCK_STATUSES
from ..services import inventory_service
from ..services.exceptions import InsufficientStock, NotFoundError
from ..time_utils import parse_iso_datetime
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    coerce_int,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "unit_type", "category_id",
        "selling_price_cents", "purchase_price_cents", "quantity", "reorder_point",
    },
    required_on_create={"name", "selling_price_cents", "purchase_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _product_payload() -> dict:
    payload = request.get_json(silent=True) or {}
    if isinstance(payload, dict):
        # Shop comes from the actor context; require_shop has checked any echo of it
        payload = {k: v for k, v in payload.items() if k != "shop_id"}
    return payload


@products_bp.get("")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def list_products_route():
    """
    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    - status: one of the stock statuses (optional)
    """
    status = request.args.get("status") or None
    if status is not None and status not in STOCK_STATUSES:
        return {"error": f"status must be one of: {', '.join(STOCK_STATUSES)}"}, 400

    return inventory_service.list_products(
        g.actor.shop_id,
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
        status=status,
    )


@products_bp.get("/<product_id>")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def get_product_route(product_id: str):
    p = inventory_service.get_product(product_id, g.actor.shop_id)
    if not p:
        return {"error": "Product not found"}, 404
    return p.to_dict()


@products_bp.post("")
@require_actor
@require_permission("MANAGE_PRODUCTS")
@require_shop
def create_product_route():
    payload = _product_payload()

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = inventory_service.create_product(shop_id=g.actor.shop_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except NotFoundError as e:
        return {"error": str(e), "details": e.details}, 404
    except ValueError as e:
        return {"error": str(e)}, 400

    current_app.logger.info("Product %s created in shop %s", created["id"], g.actor.shop_id)
    return created, 201


@products_bp.patch("/<product_id>")
@require_actor
@require_permission("MANAGE_PRODUCTS")
@require_shop
def update_product_route(product_id: str):
    payload = _product_payload()

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = inventory_service.update_product(product_id=product_id, shop_id=g.actor.shop_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except NotFoundError as e:
        return {"error": str(e), "details": e.details}, 404

    if updated is None:
        return {"error": "Product not found"}, 404
    return updated


@products_bp.post("/<product_id>/adjust")
@require_actor
@require_permission("ADJUST_INVENTORY")
@require_shop
def adjust_stock_route(product_id: str):
    """
    Restock or correct stock.

    Body: {"delta": int, "reason": str?, "supplier_id": str?}
    (positive adds, negative removes; never below zero; supplier only on restocks)
    """
    data = request.get_json(silent=True) or {}
    try:
        delta = coerce_int(data.get("delta"), "delta")
        product = inventory_service.adjust_stock(
            product_id=product_id,
            shop_id=g.actor.shop_id,
            delta=delta,
            reason=data.get("reason") or None,
            performed_by=g.actor.actor_id,
            supplier_id=data.get("supplier_id") or None,
        )
        return jsonify({"product": product}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except InsufficientStock as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CATEGORIES
# =============================================================================

@products_bp.get("/categories")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def list_categories_route():
    items = inventory_service.list_categories(g.actor.shop_id)
    return jsonify({"items": items, "count": len(items)}), 200


@products_bp.post("/categories")
@require_actor
@require_permission("MANAGE_PRODUCTS")
@require_shop
def create_category_route():
    data = request.get_json(silent=True) or {}
    try:
        category = inventory_service.create_category(
            shop_id=g.actor.shop_id,
            name=data.get("name"),
            description=data.get("description"),
        )
        return jsonify(category), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400


# =============================================================================
# STOCK MOVEMENTS
# =============================================================================

@products_bp.get("/movements")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def list_movements_route():
    """
    Query params:
    - product_id, type (added|sold|returned|adjustment)
    - date_from / date_to: ISO-8601, inclusive
    - page / per_page as for products
    """
    try:
        result = inventory_service.list_stock_movements(
            g.actor.shop_id,
            product_id=request.args.get("product_id") or None,
            movement_type=request.args.get("type") or None,
            date_from=parse_iso_datetime(request.args.get("date_from")),
            date_to=parse_iso_datetime(request.args.get("date_to")),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200
