from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id


class Customer(db.Model):
    """
    Customer master data.

    A sale without a customer is a walk-in sale (customer_id NULL).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "email", name="uq_customers_shop_email"),
        db.Index("ix_customers_shop_name", "shop_id", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
