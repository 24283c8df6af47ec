"""
Sales Service - read-back and status updates for completed checkouts.

Sale creation lives in checkout_service (one atomic unit of work). This
module never touches inventory: status updates are bookkeeping only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Sale, OrderLine, DELIVERY_STATUSES, LINE_PAYMENT_STATUSES, SALE_STATUSES
from ..validation import ValidationError
from .concurrency import lock_for_update
from .exceptions import SaleNotFound, SaleStatusError


def _sale_payload(sale: Sale, *, include_receipt: bool = False) -> dict:
    data = sale.to_dict()
    data["customer"] = (
        {"id": sale.customer.id, "name": sale.customer.name, "phone": sale.customer.phone}
        if sale.customer else None
    )
    data["lines"] = [line.to_dict() for line in sale.lines]
    if include_receipt:
        data["receipt"] = sale.receipt.to_dict() if sale.receipt else None
    return data


def list_sales(
    shop_id: str,
    page: int = 1,
    per_page: int = 10,
    status: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict:
    """
    Shop-scoped sales, newest first, with their lines and customer.

    Date bounds are inclusive and compared against created_at.
    """
    if status is not None and status not in SALE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(SALE_STATUSES)}")

    base_query = db.session.query(Sale).filter(Sale.shop_id == shop_id)
    if status:
        base_query = base_query.filter(Sale.status == status)
    if date_from is not None:
        base_query = base_query.filter(Sale.created_at >= date_from)
    if date_to is not None:
        base_query = base_query.filter(Sale.created_at <= date_to)

    per_page = min(max(per_page or 10, 1), 100)
    page = max(page or 1, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 0

    sales = (
        base_query
        .options(
            selectinload(Sale.lines).joinedload(OrderLine.product),
            joinedload(Sale.customer),
        )
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "items": [_sale_payload(s) for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_sale_details(sale_id: str, shop_id: str) -> dict:
    """Sale with lines (product name, quantity, unit price), customer and receipt."""
    sale = db.session.query(Sale).filter_by(id=sale_id, shop_id=shop_id).first()
    if not sale:
        raise SaleNotFound(sale_id)
    return _sale_payload(sale, include_receipt=True)


def update_sale_status(
    *,
    sale_id: str,
    shop_id: str,
    delivery_status: str | None = None,
    payment_status: str | None = None,
) -> dict:
    """
    Update delivery and/or payment status of a sale.

    - delivery_status is set as given.
    - payment_status, when given, is written to every order line and flips
      the sale to 'completed' when 'paid', otherwise 'pending'.
    - Cancelled sales are final.
    """
    if delivery_status is None and payment_status is None:
        raise ValidationError("delivery_status or payment_status required")
    if delivery_status is not None and delivery_status not in DELIVERY_STATUSES:
        raise ValidationError(f"delivery_status must be one of: {', '.join(DELIVERY_STATUSES)}")
    if payment_status is not None and payment_status not in LINE_PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(LINE_PAYMENT_STATUSES)}")

    try:
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id, shop_id=shop_id)).first()
        if not sale:
            raise SaleNotFound(sale_id)

        if sale.status == "cancelled":
            raise SaleStatusError("Cannot update a cancelled sale")

        if delivery_status is not None:
            sale.delivery_status = delivery_status

        if payment_status is not None:
            sale.status = "completed" if payment_status == "paid" else "pending"
            (
                db.session.query(OrderLine)
                .filter(OrderLine.sale_id == sale.id)
                .update({OrderLine.payment_status: payment_status}, synchronize_session="fetch")
            )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return _sale_payload(sale)
