# Overview: Flask API routes for OHADA codes, income and expense entries; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_actor, require_permission, require_shop
from ..services import ledger_service
from ..services.exceptions import LedgerError
from ..time_utils import parse_iso_datetime
from ..validation import ConflictError, ValidationError, coerce_cents

"""
Time semantics:
- API accepts ISO-8601 datetimes with Z/offsets; backend normalizes to UTC-naive internally.
- date_from / date_to filtering is inclusive on both ends.
- Income and expense rows are append-only: there are no update or delete routes.
"""

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


def _date_range():
    return (
        parse_iso_datetime(request.args.get("date_from")),
        parse_iso_datetime(request.args.get("date_to")),
    )


# =============================================================================
# OHADA CODES
# =============================================================================

@ledger_bp.get("/codes")
@require_actor
@require_permission("VIEW_LEDGER")
def list_codes_route():
    try:
        items = ledger_service.list_codes(request.args.get("type") or None)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": items, "count": len(items)}), 200


@ledger_bp.post("/codes")
@require_actor
@require_permission("MANAGE_LEDGER_CODES")
def create_code_route():
    data = request.get_json(silent=True) or {}
    try:
        row = ledger_service.create_code(
            code=data.get("code"),
            name=data.get("name"),
            code_type=data.get("type"),
            description=data.get("description"),
        )
        return jsonify(row), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


# =============================================================================
# ENTRIES
# =============================================================================

def _record(kind: str):
    data = request.get_json(silent=True) or {}
    record = ledger_service.record_income if kind == "income" else ledger_service.record_expense
    try:
        entry = record(
            shop_id=g.actor.shop_id,
            ohada_code=str(data.get("ohada_code") or ""),
            amount_cents=coerce_cents(data.get("amount_cents"), "amount_cents"),
            payment_method=data.get("payment_method") or "cash",
            description=data.get("description") or "",
            date=parse_iso_datetime(data.get("date")),
        )
        current_app.logger.info(
            "Manual %s recorded shop=%s code=%s amount=%s",
            kind, g.actor.shop_id, entry["ohada_code"]["code"], entry["amount_cents"],
        )
        return jsonify(entry), 201
    except LedgerError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record %s", kind)
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.get("/incomes")
@require_actor
@require_permission("VIEW_LEDGER")
@require_shop
def list_incomes_route():
    try:
        date_from, date_to = _date_range()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(ledger_service.list_incomes(g.actor.shop_id, date_from, date_to)), 200


@ledger_bp.get("/incomes/<income_id>")
@require_actor
@require_permission("VIEW_LEDGER")
@require_shop
def get_income_route(income_id: str):
    row = ledger_service.get_income(income_id, g.actor.shop_id)
    if row is None:
        return jsonify({"error": "Income entry not found"}), 404
    return jsonify(row), 200


@ledger_bp.post("/incomes")
@require_actor
@require_permission("RECORD_LEDGER")
@require_shop
def record_income_route():
    return _record("income")


@ledger_bp.get("/expenses")
@require_actor
@require_permission("VIEW_LEDGER")
@require_shop
def list_expenses_route():
    try:
        date_from, date_to = _date_range()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(ledger_service.list_expenses(g.actor.shop_id, date_from, date_to)), 200


@ledger_bp.post("/expenses")
@require_actor
@require_permission("RECORD_LEDGER")
@require_shop
def record_expense_route():
    return _record("expense")
