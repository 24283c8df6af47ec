from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .tenancy import new_id

OHADA_CODE_TYPES = ("income", "expense")


class OhadaCode(db.Model):
    """
    Fixed accounting classification (OHADA regional chart of accounts).

    Seeded independently of any business workflow; checkout only looks
    codes up (701 = sales of goods) and fails closed when one is missing.
    """
    __tablename__ = "ohada_codes"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    code = db.Column(db.String(16), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(16), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<OhadaCode code={self.code!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "type": self.type,
        }


class IncomeEntry(db.Model):
    """
    Income ledger row.

    IMMUTABLE: append-only, never updated or deleted. Checkout writes
    exactly one row per completed sale (sale_id set); manual income is
    recorded with sale_id NULL.
    """
    __tablename__ = "income_entries"
    __table_args__ = (
        db.Index("ix_income_shop_date", "shop_id", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    ohada_code_id = db.Column(db.String(36), db.ForeignKey("ohada_codes.id"), nullable=False, index=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=True, unique=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    ohada_code = db.relationship("OhadaCode")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "ohada_code": self.ohada_code.to_dict() if self.ohada_code else None,
            "sale_id": self.sale_id,
            "date": to_utc_z(self.date),
            "description": self.description,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class ExpenseEntry(db.Model):
    """Expense ledger row. Append-only, like IncomeEntry."""
    __tablename__ = "expense_entries"
    __table_args__ = (
        db.Index("ix_expense_shop_date", "shop_id", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False, index=True)
    ohada_code_id = db.Column(db.String(36), db.ForeignKey("ohada_codes.id"), nullable=False, index=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    ohada_code = db.relationship("OhadaCode")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "ohada_code": self.ohada_code.to_dict() if self.ohada_code else None,
            "date": to_utc_z(self.date),
            "description": self.description,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }
