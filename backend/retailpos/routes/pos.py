# Overview: Counter (POS) routes - product grid and checkout with receipt.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..services import pos_service
from ..services.checkout_service import CreateSaleRequest
from ..services.exceptions import InvalidSaleRequest
from ..services.unit_of_work import SqlAlchemyUnitOfWork
from .sales import checkout_status


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.get("/products")
@require_actor
@require_permission("VIEW_INVENTORY")
@require_shop
def pos_products_route():
    """In-stock products. Query params: category_id, search."""
    try:
        items = pos_service.list_pos_products(
            g.actor.shop_id,
            category_id=request.args.get("category_id") or None,
            search=request.args.get("search") or None,
        )
        return jsonify({"items": items, "count": len(items)}), 200
    except Exception:
        current_app.logger.exception("Failed to list POS products")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.post("/sales")
@require_actor
@require_permission("CREATE_SALE")
@require_shop
def pos_checkout_route():
    """
    Counter checkout. Same as POST /api/sales, delivery forced to
    'delivered', plus a receipt in the same transaction.

    Response on success: {"success": true, "sale", "lines", "receipt"}
    """
    payload = request.get_json(silent=True)
    try:
        sale_request = CreateSaleRequest.from_payload(
            payload,
            shop_id=g.actor.shop_id,
            actor_id=g.actor.actor_id,
            delivery_status=pos_service.POS_DELIVERY_STATUS,
        )
    except InvalidSaleRequest as e:
        return jsonify({"success": False, "error": str(e), "error_code": e.code}), 400

    result, receipt = pos_service.create_pos_sale(
        sale_request,
        SqlAlchemyUnitOfWork(),
        revenue_code=current_app.config["SALES_REVENUE_CODE"],
    )
    body = result.to_dict()
    if receipt is not None:
        body["receipt"] = receipt
    return jsonify(body), checkout_status(result)
