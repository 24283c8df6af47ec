"""
Return Processing Service

Returns are recorded against a single order line of a completed sale.

LIFECYCLE:
1. Create return (pending) - customer brings items back
2. Approve (pending -> completed) - stock restored, line refunded when fully returned
3. Reject (pending -> rejected) - no stock effect

Stock is only touched on approval, inside the same transaction as the
status change, using the same guarded increment as restocking. The
approval also writes a "returned" stock movement referencing the return.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import OrderLine, ReturnRequest, Sale, RETURN_STATUSES
from ..time_utils import utcnow
from ..validation import ValidationError, coerce_int
from . import inventory_service
from .concurrency import begin_write_transaction, lock_for_update
from .exceptions import NotFoundError, ReturnError

logger = logging.getLogger(__name__)

# =============================================================================
# RETURN STATUS CONSTANTS
# =============================================================================

RETURN_STATUS_PENDING = "pending"
RETURN_STATUS_COMPLETED = "completed"
RETURN_STATUS_REJECTED = "rejected"

# Returns in these states count against the returnable quantity
_OPEN_OR_DONE = (RETURN_STATUS_PENDING, RETURN_STATUS_COMPLETED)


def _returned_quantity(order_line_id: str, statuses=_OPEN_OR_DONE) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(ReturnRequest.quantity), 0))
        .filter(ReturnRequest.order_line_id == order_line_id, ReturnRequest.status.in_(statuses))
        .scalar()
    )
    return int(total or 0)


def _load_line(order_line_id: str, shop_id: str) -> OrderLine:
    line = (
        db.session.query(OrderLine)
        .join(Sale, Sale.id == OrderLine.sale_id)
        .filter(OrderLine.id == order_line_id, Sale.shop_id == shop_id)
        .first()
    )
    if not line:
        raise NotFoundError("Order line not found", details={"order_line_id": order_line_id})
    return line


# =============================================================================
# RETURN CREATION
# =============================================================================

def create_return(
    *,
    shop_id: str,
    order_line_id: str,
    quantity,
    reason: str | None,
    requested_by: str | None = None,
) -> dict:
    """
    Record a pending return for part or all of an order line.

    The refund is the unit price captured on the line at sale time times
    the returned quantity.

    Raises:
        ValidationError: bad quantity or missing reason
        NotFoundError: order line not in this shop
        ReturnError: sale not completed, or quantity exceeds what is still returnable
    """
    quantity = coerce_int(quantity, "quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    if not reason or not str(reason).strip():
        raise ValidationError("reason is required")

    try:
        begin_write_transaction()
        line = _load_line(order_line_id, shop_id)

        if line.sale.status != "completed":
            raise ReturnError(
                f"Cannot return items from a {line.sale.status} sale",
                details={"sale_id": line.sale_id, "sale_status": line.sale.status},
            )

        returnable = line.quantity - _returned_quantity(line.id)
        if quantity > returnable:
            raise ReturnError(
                f"Cannot return {quantity}; only {returnable} returnable on this line",
                details={"order_line_id": line.id, "returnable": returnable},
            )

        ret = ReturnRequest(
            shop_id=shop_id,
            order_line_id=line.id,
            product_id=line.product_id,
            quantity=quantity,
            reason=str(reason).strip(),
            refund_amount_cents=line.unit_price_cents * quantity,
            status=RETURN_STATUS_PENDING,
            requested_by=requested_by,
        )
        db.session.add(ret)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Return %s created for line %s qty=%s", ret.id, line.id, quantity)
    return ret.to_dict()


# =============================================================================
# RETURN RESOLUTION
# =============================================================================

def _lock_pending(return_id: str, shop_id: str) -> ReturnRequest:
    ret = lock_for_update(
        db.session.query(ReturnRequest).filter_by(id=return_id, shop_id=shop_id)
    ).first()
    if not ret:
        raise NotFoundError("Return not found", details={"return_id": return_id})
    if ret.status != RETURN_STATUS_PENDING:
        raise ReturnError(f"Return is {ret.status}; only pending returns can be resolved")
    return ret


def approve_return(*, return_id: str, shop_id: str, resolved_by: str | None = None) -> dict:
    """
    Approve a pending return: restock the product and complete the return.

    When completed returns now cover the whole line, its payment status
    becomes 'refunded'. One transaction.
    """
    try:
        begin_write_transaction()
        ret = _lock_pending(return_id, shop_id)

        product = inventory_service.apply_increment(ret.product_id, ret.quantity)
        inventory_service.record_movement(inventory_service.build_movement(
            product, "returned", ret.quantity,
            reference=ret.id, reason=ret.reason, performed_by=resolved_by,
        ))

        ret.status = RETURN_STATUS_COMPLETED
        ret.resolved_by = resolved_by
        ret.resolved_at = utcnow()
        db.session.flush()

        line = ret.order_line
        if _returned_quantity(line.id, (RETURN_STATUS_COMPLETED,)) >= line.quantity:
            line.payment_status = "refunded"

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Return %s approved; restocked %s x %s", ret.id, ret.quantity, ret.product_id)
    return ret.to_dict()


def reject_return(
    *,
    return_id: str,
    shop_id: str,
    resolved_by: str | None = None,
    rejection_reason: str | None = None,
) -> dict:
    try:
        begin_write_transaction()
        ret = _lock_pending(return_id, shop_id)
        ret.status = RETURN_STATUS_REJECTED
        ret.resolved_by = resolved_by
        ret.resolved_at = utcnow()
        ret.rejection_reason = rejection_reason
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return ret.to_dict()


def list_returns(shop_id: str, status: str | None = None) -> list[dict]:
    if status is not None and status not in RETURN_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(RETURN_STATUSES)}")

    q = db.session.query(ReturnRequest).filter(ReturnRequest.shop_id == shop_id)
    if status:
        q = q.filter(ReturnRequest.status == status)
    return [r.to_dict() for r in q.order_by(ReturnRequest.created_at.desc()).all()]
