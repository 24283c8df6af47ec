from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id

RETURN_STATUSES = ("pending", "completed", "rejected")


class ReturnRequest(db.Model):
    """
    Customer return against one order line.

    LIFECYCLE: pending -> completed (stock restored) | rejected (no effect).
    Stock is only incremented on approval, in the same transaction that
    flips the status.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_returns_quantity_positive"),
        db.Index("ix_returns_shop_status", "shop_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    order_line_id = db.Column(db.String(36), db.ForeignKey("order_lines.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    refund_amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    requested_by = db.Column(db.String(64), nullable=True)
    resolved_by = db.Column(db.String(64), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order_line = db.relationship("OrderLine", backref=db.backref("returns", lazy=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "order_line_id": self.order_line_id,
            "sale_id": self.order_line.sale_id if self.order_line else None,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "reason": self.reason,
            "refund_amount_cents": self.refund_amount_cents,
            "status": self.status,
            "requested_by": self.requested_by,
            "resolved_by": self.resolved_by,
            "resolved_at": to_utc_z(self.resolved_at),
            "rejection_reason": self.rejection_reason,
            "created_at": to_utc_z(self.created_at),
        }
