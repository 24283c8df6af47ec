# Overview: Customer master data and per-customer order history.

from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Customer, OrderLine, Sale
from ..validation import ConflictError, ValidationError
from .exceptions import NotFoundError
from .inventory_service import require_shop


def create_customer(
    *,
    shop_id: str,
    name: str,
    phone: str | None = None,
    email: str | None = None,
    address: str | None = None,
) -> dict:
    require_shop(shop_id)
    if not name or not str(name).strip():
        raise ValidationError("name is required")

    customer = Customer(
        shop_id=shop_id,
        name=str(name).strip(),
        phone=phone or None,
        email=(email or "").strip().lower() or None,
        address=address or None,
    )
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A customer with this email already exists.")
    return customer.to_dict()


def list_customers(shop_id: str, search: str | None = None) -> list[dict]:
    q = db.session.query(Customer).filter(Customer.shop_id == shop_id)
    if search:
        term = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(Customer.name).like(term),
            Customer.phone.like(term),
            func.lower(Customer.email).like(term),
        ))
    return [c.to_dict() for c in q.order_by(Customer.name.asc()).all()]


def get_customer_orders(customer_id: str, shop_id: str) -> dict:
    """Customer plus their sales (newest first), each with lines."""
    customer = db.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()
    if not customer:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})

    sales = (
        db.session.query(Sale)
        .options(selectinload(Sale.lines).joinedload(OrderLine.product))
        .filter(Sale.customer_id == customer.id, Sale.shop_id == shop_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )

    orders = []
    for sale in sales:
        data = sale.to_dict()
        data["lines"] = [line.to_dict() for line in sale.lines]
        orders.append(data)

    return {
        "customer": customer.to_dict(),
        "orders": orders,
        "total_spent_cents": sum(s.net_amount_cents for s in sales if s.status == "completed"),
    }
