from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id

SALE_STATUSES = ("pending", "completed", "cancelled")
DELIVERY_STATUSES = ("pending", "shipped", "delivered")
PAYMENT_METHODS = ("cash", "card", "mobile_money", "bank_transfer")
LINE_PAYMENT_STATUSES = ("unpaid", "paid", "refunded")


class Sale(db.Model):
    """
    Sale header - one checkout.

    FINANCIAL RECORD: created once per checkout and never deleted.
    Only status and delivery_status change after creation.

    TOTALS (all cents, computed server-side at creation):
    - subtotal_cents = sum(line quantity * product selling price)
    - net_amount_cents = subtotal_cents - discount_cents + delivery_fee_cents
    - profit_cents = sum(line quantity * (selling price - purchase price))
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_shop_status_created", "shop_id", "status", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    delivery_status = db.Column(db.String(16), nullable=False, default="pending")

    # NULL = walk-in customer
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id"), nullable=True, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    net_amount_cents = db.Column(db.Integer, nullable=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False, default=0)
    change_given_cents = db.Column(db.Integer, nullable=False, default=0)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    profit_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, default="cash")

    # Actor attribution (supplied explicitly by the caller)
    created_by = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "status": self.status,
            "delivery_status": self.delivery_status,
            "customer_id": self.customer_id,
            "subtotal_cents": self.subtotal_cents,
            "net_amount_cents": self.net_amount_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "change_given_cents": self.change_given_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "discount_cents": self.discount_cents,
            "profit_cents": self.profit_cents,
            "payment_method": self.payment_method,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderLine(db.Model):
    """
    One product-and-quantity entry within a sale.

    Created in a batch with its parent Sale; immutable thereafter except
    for payment_status. unit_price_cents is the selling price snapshot at
    checkout time so later price edits never rewrite history.
    """
    __tablename__ = "order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    payment_status = db.Column(db.String(16), nullable=False, default="unpaid")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("lines", lazy=True, order_by="OrderLine.created_at"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
        }


class Receipt(db.Model):
    """Counter receipt issued for a POS sale (one per sale)."""
    __tablename__ = "receipts"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, unique=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="paid")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("receipt", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
