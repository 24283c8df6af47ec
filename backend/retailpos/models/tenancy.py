from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z


def new_id() -> str:
    """Primary keys are UUID4 strings generated server-side."""
    return str(uuid.uuid4())


class Shop(db.Model):
    """
    Shop (selling location) - the tenant scope of every business record.

    Products, sales, ledger entries, customers and returns all carry a
    shop_id; every service call is scoped by the shop the caller supplies.
    """
    __tablename__ = "shops"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)
    currency = db.Column(db.String(8), nullable=False, default="XAF")

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "currency": self.currency,
            "created_at": to_utc_z(self.created_at),
        }
