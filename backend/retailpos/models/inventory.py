from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id

# Derived stock levels, see inventory_service.derive_stock_status
STOCK_STATUSES = ("out_of_stock", "low_stock", "medium_stock", "high_stock")


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name", name="uq_categories_shop_name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data plus its on-hand quantity.

    QUANTITY: quantity is the single shared mutable resource of checkout.
    It is only ever changed through the guarded UPDATE statements in
    inventory_service (decrement-with-floor / increment), never by
    read-modify-write on a loaded instance. The CHECK constraint is the
    last line: a negative quantity is a data-integrity bug.

    STATUS: status is a pure function of (quantity, reorder_point) and is
    recomputed after every quantity or reorder point change.

    PRICES: selling_price_cents and purchase_price_cents are authoritative;
    checkout never trusts a price sent by the client.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_shop_name", "shop_id", "name"),
        db.Index("ix_products_shop_status", "shop_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)

    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    unit_type = db.Column(db.String(32), nullable=True)

    selling_price_cents = db.Column(db.Integer, nullable=False)
    purchase_price_cents = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=True, default=10)
    status = db.Column(db.String(16), nullable=False, default="out_of_stock", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} quantity={self.quantity} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "category_id": self.category_id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "unit_type": self.unit_type,
            "selling_price_cents": self.selling_price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "quantity": self.quantity,
            "reorder_point": self.reorder_point,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


MOVEMENT_TYPES = ("added", "sold", "returned", "adjustment")
MOVEMENT_DIRECTIONS = ("inbound", "outbound")


class StockMovement(db.Model):
    """
    One row per change of Product.quantity.

    APPEND-ONLY: written in the same transaction as the guarded UPDATE it
    describes (checkout line, approved return, manual adjustment) and never
    edited afterwards. quantity is always positive; direction carries the sign.

    COST: cost_per_unit_cents is the product's purchase price at the time of
    the movement, so total_cost_cents stays meaningful after price changes.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        db.Index("ix_stock_movements_shop_occurred", "shop_id", "occurred_at"),
        db.Index("ix_stock_movements_product", "product_id", "occurred_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    supplier_id = db.Column(db.String(36), db.ForeignKey("suppliers.id"), nullable=True, index=True)

    movement_type = db.Column(db.String(16), nullable=False, index=True)
    direction = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=True)

    # Sale id for "sold", return id for "returned"
    reference = db.Column(db.String(64), nullable=True, index=True)
    reason = db.Column(db.String(255), nullable=True)

    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cost_cents = db.Column(db.Integer, nullable=False, default=0)

    performed_by = db.Column(db.String(64), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("movements", lazy=True))

    def __repr__(self) -> str:
        return f"<StockMovement {self.movement_type} {self.direction} product={self.product_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "supplier_id": self.supplier_id,
            "movement_type": self.movement_type,
            "direction": self.direction,
            "quantity": self.quantity,
            "quantity_after": self.quantity_after,
            "reference": self.reference,
            "reason": self.reason,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "total_cost_cents": self.total_cost_cents,
            "performed_by": self.performed_by,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
        }
