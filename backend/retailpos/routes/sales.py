# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_permission, require_shop
from ..services import sales_service
from ..services.checkout_service import CreateSaleRequest, create_sale
from ..services.exceptions import InvalidSaleRequest, NotFoundError, SaleStatusError
from ..services.unit_of_work import SqlAlchemyUnitOfWork
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

# error_code -> HTTP status for failed checkouts
CHECKOUT_HTTP_STATUS = {
    "INVALID_REQUEST": 400,
    "PRODUCT_NOT_FOUND": 404,
    "INSUFFICIENT_STOCK": 409,
    "LEDGER_CONFIGURATION": 500,
    "CHECKOUT_FAILED": 500,
}


def checkout_status(result) -> int:
    if result.success:
        return 201
    return CHECKOUT_HTTP_STATUS.get(result.error_code, 500)


@sales_bp.post("")
@require_actor
@require_permission("CREATE_SALE")
@require_shop
def create_sale_route():
    """
    Check out a cart: sale, order lines, income entry and stock decrements
    in one transaction.

    Requires: CREATE_SALE permission
    Available to: admin, manager, cashier

    Always answers {"success": true|false, ...}.
    """
    payload = request.get_json(silent=True)
    try:
        sale_request = CreateSaleRequest.from_payload(
            payload,
            shop_id=g.actor.shop_id,
            actor_id=g.actor.actor_id,
        )
    except InvalidSaleRequest as e:
        return jsonify({"success": False, "error": str(e), "error_code": e.code}), 400

    result = create_sale(
        sale_request,
        SqlAlchemyUnitOfWork(),
        revenue_code=current_app.config["SALES_REVENUE_CODE"],
    )
    return jsonify(result.to_dict()), checkout_status(result)


@sales_bp.get("")
@require_actor
@require_permission("CREATE_SALE")
@require_shop
def list_sales_route():
    """
    List sales for the caller's shop, newest first.

    Query params: page, per_page, status, date_from, date_to (ISO 8601)
    """
    try:
        result = sales_service.list_sales(
            g.actor.shop_id,
            page=request.args.get("page", default=1, type=int),
            per_page=request.args.get("per_page", default=10, type=int),
            status=request.args.get("status") or None,
            date_from=parse_iso_datetime(request.args.get("date_from")),
            date_to=parse_iso_datetime(request.args.get("date_to")),
        )
        return jsonify(result), 200
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<sale_id>")
@require_actor
@require_permission("CREATE_SALE")
@require_shop
def get_sale_route(sale_id: str):
    try:
        return jsonify({"sale": sales_service.get_sale_details(sale_id, g.actor.shop_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.patch("/<sale_id>/status")
@require_actor
@require_permission("UPDATE_SALE_STATUS")
@require_shop
def update_sale_status_route(sale_id: str):
    """
    Update delivery and/or payment status.

    Body: {"delivery_status"?: str, "payment_status"?: str}
    Does not touch inventory.
    """
    data = request.get_json(silent=True) or {}
    try:
        sale = sales_service.update_sale_status(
            sale_id=sale_id,
            shop_id=g.actor.shop_id,
            delivery_status=data.get("delivery_status"),
            payment_status=data.get("payment_status"),
        )
        return jsonify({"sale": sale}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except SaleStatusError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update sale status")
        return jsonify({"error": "Internal server error"}), 500
