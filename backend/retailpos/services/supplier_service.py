# Overview: Supplier master data and the products each supplier delivers.

"""
Supplier Service

Suppliers are scoped to a shop; names are unique within it.

- A product can be linked to several suppliers (SupplierProduct rows).
- Restocks may reference the supplier they came from (see
  inventory_service.adjust_stock); those stock movements keep the supplier
  alive, so a supplier with deliveries on record cannot be deleted.
"""

from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, StockMovement, Supplier, SupplierProduct
from ..validation import ConflictError, ValidationError
from .exceptions import NotFoundError
from .inventory_service import require_shop

SUPPLIER_FIELDS = ("name", "email", "phone", "address", "city", "region", "country")


def _clean(patch: dict) -> dict:
    out = {}
    for key in SUPPLIER_FIELDS:
        if key not in patch:
            continue
        value = patch[key]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        value = (value or "").strip() or None
        if key == "email" and value:
            value = value.lower()
        out[key] = value
    if "name" in out and not out["name"]:
        raise ValidationError("name is required")
    if "country" in out and not out["country"]:
        raise ValidationError("country cannot be empty")
    return out


def _get(supplier_id: str, shop_id: str) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, shop_id=shop_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
    return supplier


def _commit_or_conflict() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A supplier with this name already exists.")


def create_supplier(*, shop_id: str, patch: dict) -> dict:
    require_shop(shop_id)
    fields = _clean(patch)
    if not fields.get("name"):
        raise ValidationError("name is required")

    supplier = Supplier(shop_id=shop_id, **fields)
    db.session.add(supplier)
    _commit_or_conflict()
    return supplier.to_dict()


def list_suppliers(shop_id: str, search: str | None = None) -> list[dict]:
    """Suppliers with product count and stock value, ordered by name."""
    q = db.session.query(Supplier).filter(Supplier.shop_id == shop_id)
    if search:
        term = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(Supplier.name).like(term),
            func.lower(Supplier.email).like(term),
            func.lower(Supplier.city).like(term),
        ))
    return [s.to_dict() for s in q.order_by(Supplier.name.asc()).all()]


def get_supplier(supplier_id: str, shop_id: str) -> dict:
    return _get(supplier_id, shop_id).to_dict(include_products=True)


def update_supplier(*, supplier_id: str, shop_id: str, patch: dict) -> dict:
    supplier = _get(supplier_id, shop_id)
    for key, value in _clean(patch).items():
        setattr(supplier, key, value)
    _commit_or_conflict()
    return supplier.to_dict()


def delete_supplier(*, supplier_id: str, shop_id: str) -> None:
    """
    Delete a supplier and its product links.

    Raises:
        NotFoundError: supplier not in this shop
        ConflictError: stock movements reference the supplier
    """
    supplier = _get(supplier_id, shop_id)
    deliveries = db.session.query(func.count(StockMovement.id)).filter(
        StockMovement.supplier_id == supplier.id
    ).scalar()
    if deliveries:
        raise ConflictError(f"Supplier has {deliveries} recorded deliveries and cannot be deleted.")

    db.session.query(SupplierProduct).filter_by(supplier_id=supplier.id).delete(synchronize_session=False)
    db.session.delete(supplier)
    db.session.commit()


def link_product(*, supplier_id: str, product_id: str, shop_id: str) -> dict:
    """Record that the supplier delivers the product. Idempotent."""
    supplier = _get(supplier_id, shop_id)
    if not db.session.query(Product.id).filter_by(id=product_id, shop_id=shop_id).first():
        raise NotFoundError("Product not found", details={"product_id": product_id})

    exists = db.session.query(SupplierProduct.id).filter_by(
        supplier_id=supplier.id, product_id=product_id
    ).first()
    if not exists:
        db.session.add(SupplierProduct(supplier_id=supplier.id, product_id=product_id))
        db.session.commit()
    return supplier.to_dict(include_products=True)


def unlink_product(*, supplier_id: str, product_id: str, shop_id: str) -> dict:
    supplier = _get(supplier_id, shop_id)
    removed = db.session.query(SupplierProduct).filter_by(
        supplier_id=supplier.id, product_id=product_id
    ).delete(synchronize_session=False)
    if not removed:
        raise NotFoundError("Product is not linked to this supplier", details={"product_id": product_id})
    db.session.commit()
    return supplier.to_dict(include_products=True)
