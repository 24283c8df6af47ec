# Overview: Flask API routes for shop management.

from flask import Blueprint, jsonify, request

from ..decorators import require_actor, require_permission
from ..services import shop_service
from ..validation import ConflictError, ValidationError


shops_bp = Blueprint("shops", __name__, url_prefix="/api/shops")


@shops_bp.get("")
@require_actor
def list_shops_route():
    items = shop_service.list_shops()
    return jsonify({"items": items, "count": len(items)}), 200


@shops_bp.post("")
@require_actor
@require_permission("MANAGE_SHOPS")
def create_shop_route():
    data = request.get_json(silent=True) or {}
    try:
        shop = shop_service.create_shop(data.get("name"), code=data.get("code"), currency=data.get("currency"))
        return jsonify(shop), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
