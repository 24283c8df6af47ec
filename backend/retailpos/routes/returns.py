# Overview: Flask API routes for customer returns; parses input and returns JSON responses.

"""
Returns API routes.

Flow:
1. POST /api/returns                  - record a pending return against an order line
2. POST /api/returns/<id>/approve     - restock and complete (APPROVE_RETURN)
3. POST /api/returns/<id>/reject      - close without stock effect (APPROVE_RETURN)
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..services import return_service
from ..services.exceptions import NotFoundError, ReturnError
from ..validation import ValidationError


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.post("")
@require_actor
@require_permission("PROCESS_RETURN")
@require_shop
def create_return_route():
    """
    Body: {"order_line_id": str, "quantity": int, "reason": str}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("order_line_id"):
        return jsonify({"error": "order_line_id required"}), 400

    try:
        ret = return_service.create_return(
            shop_id=g.actor.shop_id,
            order_line_id=data["order_line_id"],
            quantity=data.get("quantity"),
            reason=data.get("reason"),
            requested_by=g.actor.actor_id,
        )
        return jsonify({"return": ret}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ReturnError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.get("")
@require_actor
@require_permission("PROCESS_RETURN")
@require_shop
def list_returns_route():
    try:
        items = return_service.list_returns(g.actor.shop_id, status=request.args.get("status") or None)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": items, "count": len(items)}), 200


def _resolve(action, return_id: str, **kwargs):
    try:
        ret = action(return_id=return_id, shop_id=g.actor.shop_id, resolved_by=g.actor.actor_id, **kwargs)
        return jsonify({"return": ret}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ReturnError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to resolve return %s", return_id)
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.post("/<return_id>/approve")
@require_actor
@require_permission("APPROVE_RETURN")
@require_shop
def approve_return_route(return_id: str):
    return _resolve(return_service.approve_return, return_id)


@returns_bp.post("/<return_id>/reject")
@require_actor
@require_permission("APPROVE_RETURN")
@require_shop
def reject_return_route(return_id: str):
    data = request.get_json(silent=True) or {}
    return _resolve(return_service.reject_return, return_id, rejection_reason=data.get("reason"))
