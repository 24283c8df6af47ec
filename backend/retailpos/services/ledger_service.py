# Overview: Service-layer operations for the income/expense ledger and its OHADA classification codes.

"""
Ledger Invariants (authoritative)

- Income and expense rows are append-only: no updates, no deletes.
- Every row references one OHADA code of the matching type.
- Each completed sale has exactly one income row (income_entries.sale_id is
  unique) whose amount equals the sale's net amount; it is written inside
  the checkout transaction.
- date is business time; created_at is system time (DB default).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OhadaCode, IncomeEntry, ExpenseEntry, OHADA_CODE_TYPES, PAYMENT_METHODS
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from .exceptions import LedgerError

SALES_REVENUE_CODE = "701"

# Seed subset of the OHADA chart used by the shop screens
DEFAULT_OHADA_CODES = [
    ("701", "Ventes de marchandises", "Sales of goods", "income"),
    ("706", "Services vendus", "Services sold", "income"),
    ("707", "Produits accessoires", "Ancillary income", "income"),
    ("758", "Produits divers", "Miscellaneous income", "income"),
    ("601", "Achats de marchandises", "Purchases of goods", "expense"),
    ("605", "Autres achats", "Other purchases (utilities, supplies)", "expense"),
    ("612", "Transports sur ventes", "Delivery and transport costs", "expense"),
    ("622", "Locations et charges locatives", "Rent", "expense"),
    ("624", "Entretien, réparations", "Maintenance and repairs", "expense"),
    ("627", "Publicité", "Advertising", "expense"),
    ("631", "Frais bancaires", "Bank fees", "expense"),
    ("661", "Rémunérations du personnel", "Staff wages", "expense"),
]


def seed_default_codes() -> int:
    """
    Insert any missing default OHADA codes.

    Safe to call repeatedly (idempotent). Returns the number inserted.
    """
    existing = {c for (c,) in db.session.query(OhadaCode.code).all()}
    created = 0
    for code, name, description, code_type in DEFAULT_OHADA_CODES:
        if code in existing:
            continue
        db.session.add(OhadaCode(code=code, name=name, description=description, type=code_type))
        created += 1
    db.session.commit()
    return created


def list_codes(code_type: str | None = None) -> list[dict]:
    q = db.session.query(OhadaCode)
    if code_type:
        if code_type not in OHADA_CODE_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(OHADA_CODE_TYPES)}")
        q = q.filter(OhadaCode.type == code_type)
    return [c.to_dict() for c in q.order_by(OhadaCode.code.asc()).all()]


def create_code(*, code: str, name: str, code_type: str, description: str | None = None) -> dict:
    if not code or not name:
        raise ValidationError("code and name are required")
    if code_type not in OHADA_CODE_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(OHADA_CODE_TYPES)}")

    row = OhadaCode(code=code.strip(), name=name.strip(), description=description, type=code_type)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"OHADA code {code} already exists")
    return row.to_dict()


def find_code(code: str, *, session=None) -> OhadaCode | None:
    session = session or db.session
    return session.query(OhadaCode).filter_by(code=code).first()


def append_income(
    *,
    shop_id: str,
    ohada_code_id: str,
    amount_cents: int,
    payment_method: str,
    description: str,
    sale_id: str | None = None,
    date: datetime | None = None,
    session=None,
) -> IncomeEntry:
    """
    Append-only income row.

    Flushes (so the id is assigned) but never commits: callers write it in
    the same transaction as the business event it records.
    """
    session = session or db.session
    entry = IncomeEntry(
        shop_id=shop_id,
        ohada_code_id=ohada_code_id,
        sale_id=sale_id,
        date=date or utcnow(),
        description=description,
        amount_cents=amount_cents,
        payment_method=payment_method,
    )
    session.add(entry)
    session.flush()
    return entry


def _resolve_manual_code(code: str, expected_type: str) -> OhadaCode:
    row = find_code(code)
    if row is None:
        raise LedgerError(f"OHADA code {code} not found", details={"ohada_code": code})
    if row.type != expected_type:
        raise LedgerError(
            f"OHADA code {code} is an {row.type} code",
            details={"ohada_code": code, "expected_type": expected_type},
        )
    return row


def _check_manual_entry(amount_cents: int, payment_method: str, description: str) -> None:
    if amount_cents <= 0:
        raise ValidationError("amount_cents must be > 0")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    if not description or not description.strip():
        raise ValidationError("description is required")


def record_income(
    *,
    shop_id: str,
    ohada_code: str,
    amount_cents: int,
    payment_method: str,
    description: str,
    date: datetime | None = None,
) -> dict:
    """Manual (non-sale) income, e.g. service fees collected outside checkout."""
    _check_manual_entry(amount_cents, payment_method, description)
    code = _resolve_manual_code(ohada_code, "income")
    entry = append_income(
        shop_id=shop_id,
        ohada_code_id=code.id,
        amount_cents=amount_cents,
        payment_method=payment_method,
        description=description.strip(),
        date=date,
    )
    db.session.commit()
    return entry.to_dict()


def record_expense(
    *,
    shop_id: str,
    ohada_code: str,
    amount_cents: int,
    payment_method: str,
    description: str,
    date: datetime | None = None,
) -> dict:
    _check_manual_entry(amount_cents, payment_method, description)
    code = _resolve_manual_code(ohada_code, "expense")
    entry = ExpenseEntry(
        shop_id=shop_id,
        ohada_code_id=code.id,
        date=date or utcnow(),
        description=description.strip(),
        amount_cents=amount_cents,
        payment_method=payment_method,
    )
    db.session.add(entry)
    db.session.commit()
    return entry.to_dict()


def _date_filtered(q, model, date_from: datetime | None, date_to: datetime | None):
    # Inclusive on both ends
    if date_from is not None:
        q = q.filter(model.date >= date_from)
    if date_to is not None:
        q = q.filter(model.date <= date_to)
    return q


def list_incomes(shop_id: str, date_from: datetime | None = None, date_to: datetime | None = None) -> dict:
    q = db.session.query(IncomeEntry).filter(IncomeEntry.shop_id == shop_id)
    q = _date_filtered(q, IncomeEntry, date_from, date_to)
    rows = q.order_by(IncomeEntry.date.desc()).all()
    return {
        "items": [r.to_dict() for r in rows],
        "count": len(rows),
        "total_cents": sum(r.amount_cents for r in rows),
    }


def get_income(income_id: str, shop_id: str) -> dict | None:
    row = db.session.query(IncomeEntry).filter_by(id=income_id, shop_id=shop_id).first()
    return row.to_dict() if row else None


def list_expenses(shop_id: str, date_from: datetime | None = None, date_to: datetime | None = None) -> dict:
    q = db.session.query(ExpenseEntry).filter(ExpenseEntry.shop_id == shop_id)
    q = _date_filtered(q, ExpenseEntry, date_from, date_to)
    rows = q.order_by(ExpenseEntry.date.desc()).all()
    return {
        "items": [r.to_dict() for r in rows],
        "count": len(rows),
        "total_cents": sum(r.amount_cents for r in rows),
    }
