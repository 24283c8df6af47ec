from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Shop
from ..validation import ConflictError, ValidationError


def create_shop(name: str, code: str | None = None, currency: str | None = None) -> dict:
    if not name or not name.strip():
        raise ValidationError("Shop name is required")

    shop = Shop(name=name.strip(), code=(code or None), currency=(currency or "XAF"))
    db.session.add(shop)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Shop name or code already exists.")
    return shop.to_dict()


def list_shops() -> list[dict]:
    return [s.to_dict() for s in db.session.query(Shop).order_by(Shop.name.asc()).all()]
