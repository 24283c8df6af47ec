# Overview: Flask API routes for suppliers and their product links; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..services import supplier_service
from ..services.exceptions import NotFoundError
from ..validation import ConflictError, ValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _supplier_payload() -> dict:
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


@suppliers_bp.get("")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def list_suppliers_route():
    items = supplier_service.list_suppliers(g.actor.shop_id, search=request.args.get("search") or None)
    return jsonify({"items": items, "count": len(items)}), 200


@suppliers_bp.post("")
@require_actor
@require_permission("MANAGE_SUPPLIERS")
@require_shop
def create_supplier_route():
    try:
        supplier = supplier_service.create_supplier(shop_id=g.actor.shop_id, patch=_supplier_payload())
        current_app.logger.info("Supplier %s created in shop %s", supplier["id"], g.actor.shop_id)
        return jsonify(supplier), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@suppliers_bp.get("/<supplier_id>")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def get_supplier_route(supplier_id: str):
    try:
        return jsonify(supplier_service.get_supplier(supplier_id, g.actor.shop_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@suppliers_bp.patch("/<supplier_id>")
@require_actor
@require_permission("MANAGE_SUPPLIERS")
@require_shop
def update_supplier_route(supplier_id: str):
    try:
        supplier = supplier_service.update_supplier(
            supplier_id=supplier_id, shop_id=g.actor.shop_id, patch=_supplier_payload(),
        )
        return jsonify(supplier), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@suppliers_bp.delete("/<supplier_id>")
@require_actor
@require_permission("MANAGE_SUPPLIERS")
@require_shop
def delete_supplier_route(supplier_id: str):
    try:
        supplier_service.delete_supplier(supplier_id=supplier_id, shop_id=g.actor.shop_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    current_app.logger.info("Supplier %s deleted from shop %s", supplier_id, g.actor.shop_id)
    return "", 204


@suppliers_bp.post("/<supplier_id>/products")
@require_actor
@require_permission("MANAGE_SUPPLIERS")
@require_shop
def link_product_route(supplier_id: str):
    """Body: {"product_id": str}"""
    data = request.get_json(silent=True) or {}
    if not data.get("product_id"):
        return jsonify({"error": "product_id required"}), 400
    try:
        supplier = supplier_service.link_product(
            supplier_id=supplier_id, product_id=data["product_id"], shop_id=g.actor.shop_id,
        )
        return jsonify(supplier), 200
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404


@suppliers_bp.delete("/<supplier_id>/products/<product_id>")
@require_actor
@require_permission("MANAGE_SUPPLIERS")
@require_shop
def unlink_product_route(supplier_id: str, product_id: str):
    try:
        supplier = supplier_service.unlink_product(
            supplier_id=supplier_id, product_id=product_id, shop_id=g.actor.shop_id,
        )
        return jsonify(supplier), 200
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
