# Overview: Service-layer operations for products and stock levels; encapsulates business logic and database work.

# backend/retailpos/services/inventory_service.py
"""
Inventory Invariants (authoritative)

- Product.quantity is the on-hand count and never goes negative.
- Quantity changes go through guarded single-statement UPDATEs:
    decrement: SET quantity = quantity - q WHERE id = :id AND quantity >= q
    increment: SET quantity = quantity + q WHERE id = :id
  A decrement that matches no row is rejected (InsufficientStock); there is
  no read-modify-write window for two checkouts to lose an update in.
- Product.status is derive_stock_status(quantity, reorder_point), refreshed
  after every quantity or reorder point change.
- Stock is not reserved when a cart is built; it is only decremented when a
  sale is committed.
- Every quantity change writes one StockMovement in the same transaction:
    sold (checkout line), returned (approved return),
    added (restock), adjustment (downward correction).
  Initial quantities (create_product) and absolute stock takes
  (update_product) are not movements.
"""

from __future__ import annotations

import uuid

from flask import current_app
from sqlalchemy import func, or_, update

from ..extensions import db
from ..models import Product, Category, Shop, StockMovement, Supplier, MOVEMENT_TYPES
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from .exceptions import InsufficientStock, NotFoundError, ProductNotFound

# Used when a product carries no reorder point at all
FALLBACK_REORDER_POINT = 10

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "description", "unit_type", "category_id",
    "selling_price_cents", "purchase_price_cents", "quantity", "reorder_point",
}


def derive_stock_status(quantity: int, reorder_point: int | None) -> str:
    """
    Stock level for a quantity against its reorder point.

        quantity <= 0                      -> out_of_stock
        0 < quantity <= rp                 -> low_stock
        rp < quantity <= 2 * rp            -> medium_stock
        otherwise                          -> high_stock
    """
    rp = FALLBACK_REORDER_POINT if reorder_point is None else reorder_point
    if quantity <= 0:
        return "out_of_stock"
    if quantity <= rp:
        return "low_stock"
    if quantity <= rp * 2:
        return "medium_stock"
    return "high_stock"


def refresh_status(product: Product) -> Product:
    product.status = derive_stock_status(product.quantity, product.reorder_point)
    return product


def generate_sku() -> str:
    return f"PRD-{uuid.uuid4().hex[:10]}".upper()


def require_shop(shop_id: str) -> Shop:
    shop = db.session.get(Shop, shop_id) if shop_id else None
    if not shop:
        raise NotFoundError("Shop not found", details={"shop_id": shop_id})
    return shop


def get_product(product_id: str, shop_id: str | None = None, *, session=None) -> Product | None:
    """Load a product, optionally requiring it to belong to shop_id."""
    session = session or db.session
    q = session.query(Product).filter(Product.id == product_id)
    if shop_id is not None:
        q = q.filter(Product.shop_id == shop_id)
    return q.first()


def _reload(product_id: str, session) -> Product:
    # The guarded UPDATE bypasses the identity map; re-read the row.
    return session.get(Product, product_id, populate_existing=True)


def apply_decrement(product_id: str, quantity: int, *, session=None) -> Product:
    """
    Atomically remove `quantity` units from stock and re-derive status.

    Raises InsufficientStock when fewer than `quantity` units remain and
    ProductNotFound when the row does not exist. Does not commit.
    """
    session = session or db.session
    if quantity <= 0:
        raise ValueError("quantity must be > 0")

    result = session.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = session.query(Product.quantity).filter(Product.id == product_id).scalar()
        if current is None:
            raise ProductNotFound(product_id)
        raise InsufficientStock(product_id, quantity, current)

    product = _reload(product_id, session)
    refresh_status(product)
    session.flush()
    return product


def apply_increment(product_id: str, quantity: int, *, session=None) -> Product:
    """Atomically add `quantity` units to stock and re-derive status. Does not commit."""
    session = session or db.session
    if quantity <= 0:
        raise ValueError("quantity must be > 0")

    result = session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ProductNotFound(product_id)

    product = _reload(product_id, session)
    refresh_status(product)
    session.flush()
    return product


# =============================================================================
# STOCK MOVEMENTS
# =============================================================================

_DEFAULT_DIRECTION = {"added": "inbound", "returned": "inbound", "sold": "outbound"}


def build_movement(
    product: Product,
    movement_type: str,
    quantity: int,
    *,
    direction: str | None = None,
    reference: str | None = None,
    reason: str | None = None,
    performed_by: str | None = None,
    supplier_id: str | None = None,
) -> StockMovement:
    """
    Describe a quantity change that has just been applied to `product`.

    quantity_after is read from the product, so call this after the
    guarded UPDATE. Cost is the purchase price at this moment.
    """
    if movement_type not in MOVEMENT_TYPES:
        raise ValueError(f"unknown movement type: {movement_type}")
    return StockMovement(
        shop_id=product.shop_id,
        product_id=product.id,
        supplier_id=supplier_id,
        movement_type=movement_type,
        direction=direction or _DEFAULT_DIRECTION[movement_type],
        quantity=quantity,
        quantity_after=product.quantity,
        reference=reference,
        reason=reason,
        cost_per_unit_cents=product.purchase_price_cents,
        total_cost_cents=product.purchase_price_cents * quantity,
        performed_by=performed_by,
        occurred_at=utcnow(),
    )


def record_movement(movement: StockMovement, *, session=None) -> StockMovement:
    """Add a movement to the open transaction. Does not commit."""
    session = session or db.session
    session.add(movement)
    session.flush()
    return movement


def adjust_stock(
    *,
    product_id: str,
    shop_id: str,
    delta: int,
    reason: str | None = None,
    performed_by: str | None = None,
    supplier_id: str | None = None,
) -> dict:
    """
    Restock (delta > 0) or correct down (delta < 0) a product.

    Uses the same guarded statements as checkout, so a correction can never
    push quantity below zero. A restock may name the supplier it came from.
    """
    if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
        raise ValueError("delta must be a non-zero integer")

    if not get_product(product_id, shop_id):
        raise ProductNotFound(product_id)

    if supplier_id is not None:
        if delta < 0:
            raise ValidationError("supplier_id only applies to restocks (delta > 0)")
        if not db.session.query(Supplier.id).filter_by(id=supplier_id, shop_id=shop_id).first():
            raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})

    try:
        if delta > 0:
            product = apply_increment(product_id, delta)
            movement = build_movement(
                product, "added", delta,
                reason=reason, performed_by=performed_by, supplier_id=supplier_id,
            )
        else:
            product = apply_decrement(product_id, -delta)
            movement = build_movement(
                product, "adjustment", -delta,
                direction="outbound", reason=reason, performed_by=performed_by,
            )
        record_movement(movement)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Stock adjusted product=%s delta=%s quantity=%s", product_id, delta, product.quantity)
    return product.to_dict()


def list_stock_movements(
    shop_id: str,
    *,
    product_id: str | None = None,
    movement_type: str | None = None,
    date_from=None,
    date_to=None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Shop-scoped movement history, newest first.

    date_from / date_to are inclusive bounds on occurred_at.
    """
    if movement_type is not None and movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")

    q = db.session.query(StockMovement).filter(StockMovement.shop_id == shop_id)
    if product_id:
        q = q.filter(StockMovement.product_id == product_id)
    if movement_type:
        q = q.filter(StockMovement.movement_type == movement_type)
    if date_from is not None:
        q = q.filter(StockMovement.occurred_at >= date_from)
    if date_to is not None:
        q = q.filter(StockMovement.occurred_at <= date_to)
    q = q.order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())

    if page is None:
        rows = q.all()
        return {"items": [m.to_dict() for m in rows], "count": len(rows)}

    per_page = min(per_page or 20, 100)
    page = max(page, 1)
    total = q.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    rows = q.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [m.to_dict() for m in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_category(shop_id: str, category_id: str | None) -> None:
    if category_id is None:
        return
    exists = db.session.query(Category.id).filter_by(id=category_id, shop_id=shop_id).first()
    if not exists:
        raise NotFoundError("Category not found", details={"category_id": category_id})


def create_product(*, shop_id: str, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    SKU is generated when omitted and must be unique. Status is derived
    from the initial quantity.

    Raises:
        NotFoundError: shop or category does not exist
        ConflictError: SKU already exists
    """
    require_shop(shop_id)
    _check_category(shop_id, patch.get("category_id"))

    sku = patch.get("sku") or generate_sku()
    if db.session.query(Product.id).filter(Product.sku == sku).first():
        raise ConflictError("SKU already exists.")

    p = Product(shop_id=shop_id, quantity=0)
    apply_product_patch(p, patch)
    p.sku = sku
    if p.reorder_point is None and "reorder_point" not in patch:
        p.reorder_point = current_app.config.get("DEFAULT_REORDER_POINT", FALLBACK_REORDER_POINT)
    refresh_status(p)

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: str, shop_id: str, patch: dict) -> dict | None:
    """
    Update a product.

    Returns the updated product dict, or None if it is not in the shop.
    Quantity edits here are absolute stock takes; sales never come
    through this path.
    """
    p = get_product(product_id, shop_id)
    if not p:
        return None

    if "sku" in patch and patch["sku"] != p.sku:
        existing = (
            db.session.query(Product.id)
            .filter(Product.sku == patch["sku"], Product.id != p.id)
            .first()
        )
        if existing:
            raise ConflictError("SKU already exists.")

    if "category_id" in patch:
        _check_category(shop_id, patch["category_id"])

    apply_product_patch(p, patch)
    refresh_status(p)
    db.session.commit()
    return p.to_dict()


def list_products(
    shop_id: str,
    page: int | None = None,
    per_page: int | None = None,
    status: str | None = None,
) -> dict:
    """
    Shop-scoped product listing with optional pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = (
        db.session.query(Product)
        .filter(Product.shop_id == shop_id)
        .order_by(Product.name.asc(), Product.id.asc())
    )
    if status:
        base_query = base_query.filter(Product.status == status)

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_sellable_products(
    shop_id: str,
    category_id: str | None = None,
    search: str | None = None,
) -> list[dict]:
    """
    Products the counter can sell right now (anything not out_of_stock).

    search matches name or SKU, case-insensitive.
    """
    q = (
        db.session.query(Product)
        .filter(Product.shop_id == shop_id, Product.status != "out_of_stock")
    )
    if category_id:
        q = q.filter(Product.category_id == category_id)
    if search:
        term = f"%{search.strip().lower()}%"
        q = q.filter(or_(func.lower(Product.name).like(term), func.lower(Product.sku).like(term)))

    return [p.to_dict() for p in q.order_by(Product.name.asc()).all()]


def create_category(*, shop_id: str, name: str, description: str | None = None) -> dict:
    require_shop(shop_id)
    if not name or not name.strip():
        raise ValueError("name is required")

    existing = db.session.query(Category.id).filter_by(shop_id=shop_id, name=name.strip()).first()
    if existing:
        raise ConflictError("Category already exists.")

    category = Category(shop_id=shop_id, name=name.strip(), description=description)
    db.session.add(category)
    db.session.commit()
    return category.to_dict()


def list_categories(shop_id: str) -> list[dict]:
    rows = db.session.query(Category).filter_by(shop_id=shop_id).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in rows]
