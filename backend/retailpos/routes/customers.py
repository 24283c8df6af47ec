# Overview: Flask API routes for customers and their order history.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..services import customer_service
from ..services.exceptions import NotFoundError
from ..validation import ConflictError, ValidationError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_actor
@require_permission("MANAGE_CUSTOMERS")
@require_shop
def list_customers_route():
    items = customer_service.list_customers(g.actor.shop_id, search=request.args.get("search") or None)
    return jsonify({"items": items, "count": len(items)}), 200


@customers_bp.post("")
@require_actor
@require_permission("MANAGE_CUSTOMERS")
@require_shop
def create_customer_route():
    data = request.get_json(silent=True) or {}
    try:
        customer = customer_service.create_customer(
            shop_id=g.actor.shop_id,
            name=data.get("name"),
            phone=data.get("phone"),
            email=data.get("email"),
            address=data.get("address"),
        )
        return jsonify(customer), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<customer_id>/orders")
@require_actor
@require_permission("MANAGE_CUSTOMERS")
@require_shop
def customer_orders_route(customer_id: str):
    try:
        return jsonify(customer_service.get_customer_orders(customer_id, g.actor.shop_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
