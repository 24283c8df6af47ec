from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id


class Supplier(db.Model):
    """
    Supplier master data, scoped to a shop.

    Names are unique within a shop. Restocks may name the supplier they came
    from (StockMovement.supplier_id); a supplier with recorded deliveries
    cannot be deleted.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name", name="uq_suppliers_shop_name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    region = db.Column(db.String(120), nullable=True)
    country = db.Column(db.String(120), nullable=False, default="Cameroon")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("suppliers", lazy=True))
    # Read side of the SupplierProduct link rows; writes go through SupplierProduct
    products = db.relationship(
        "Product",
        secondary="supplier_products",
        viewonly=True,
        lazy="selectin",
        order_by="Product.name",
    )

    def to_dict(self, include_products: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "product_count": len(self.products),
            "stock_value_cents": sum(p.purchase_price_cents * p.quantity for p in self.products),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_products:
            data["products"] = [
                {"id": p.id, "sku": p.sku, "name": p.name, "quantity": p.quantity, "status": p.status}
                for p in self.products
            ]
        return data


class SupplierProduct(db.Model):
    """Link row: supplier delivers product. A product may have several suppliers."""
    __tablename__ = "supplier_products"
    __table_args__ = (
        db.UniqueConstraint("supplier_id", "product_id", name="uq_supplier_products_pair"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    supplier_id = db.Column(db.String(36), db.ForeignKey("suppliers.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
