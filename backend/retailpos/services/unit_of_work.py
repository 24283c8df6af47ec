# Overview: Store interfaces and the transaction boundary the checkout coordinator runs inside.

"""
Unit of work for checkout.

The coordinator only talks to three stores and a transaction:

    InventoryStore  - product lookup, guarded stock decrement/increment, movement rows
    LedgerStore     - OHADA code lookup, append-only income rows
    SalesStore      - sale header + order lines (+ receipt, customer lookup)

SqlAlchemyUnitOfWork implements them over the Flask-SQLAlchemy session.
Leaving the `with` block without commit() rolls everything back, so no
partial checkout is ever visible to other readers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..extensions import db
from ..models import Customer, IncomeEntry, OhadaCode, OrderLine, Product, Receipt, Sale, StockMovement
from . import inventory_service, ledger_service
from .concurrency import begin_write_transaction


class InventoryStore(ABC):

    @abstractmethod
    def get_product(self, product_id: str, shop_id: str) -> Product | None:
        """Product by id within the shop, or None."""

    @abstractmethod
    def apply_decrement(self, product_id: str, quantity: int) -> Product:
        """Remove stock (never below zero) and return the refreshed product."""

    @abstractmethod
    def apply_increment(self, product_id: str, quantity: int) -> Product:
        """Add stock and return the refreshed product."""

    @abstractmethod
    def record_movement(self, movement: StockMovement) -> StockMovement:
        """Append the audit row for a quantity change just applied."""


class LedgerStore(ABC):

    @abstractmethod
    def find_code(self, code: str) -> OhadaCode | None:
        pass

    @abstractmethod
    def append(self, entry: IncomeEntry) -> IncomeEntry:
        pass


class SalesStore(ABC):

    @abstractmethod
    def get_customer(self, customer_id: str, shop_id: str) -> Customer | None:
        pass

    @abstractmethod
    def create(self, sale: Sale, lines: list[OrderLine]) -> Sale:
        """Persist the header and its lines; assigns ids to both."""

    @abstractmethod
    def add_receipt(self, receipt: Receipt) -> Receipt:
        pass


class UnitOfWork(ABC):
    inventory: InventoryStore
    ledger: LedgerStore
    sales: SalesStore

    def __enter__(self) -> "UnitOfWork":
        self._committed = False
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None or not self._committed:
            self.rollback()

    def commit(self) -> None:
        self._commit()
        self._committed = True

    @abstractmethod
    def begin(self) -> None:
        pass

    @abstractmethod
    def _commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class SqlAlchemyInventoryStore(InventoryStore):
    def __init__(self, session):
        self.session = session

    def get_product(self, product_id: str, shop_id: str) -> Product | None:
        return inventory_service.get_product(product_id, shop_id, session=self.session)

    def apply_decrement(self, product_id: str, quantity: int) -> Product:
        return inventory_service.apply_decrement(product_id, quantity, session=self.session)

    def apply_increment(self, product_id: str, quantity: int) -> Product:
        return inventory_service.apply_increment(product_id, quantity, session=self.session)

    def record_movement(self, movement: StockMovement) -> StockMovement:
        return inventory_service.record_movement(movement, session=self.session)


class SqlAlchemyLedgerStore(LedgerStore):
    def __init__(self, session):
        self.session = session

    def find_code(self, code: str) -> OhadaCode | None:
        return ledger_service.find_code(code, session=self.session)

    def append(self, entry: IncomeEntry) -> IncomeEntry:
        self.session.add(entry)
        self.session.flush()
        return entry


class SqlAlchemySalesStore(SalesStore):
    def __init__(self, session):
        self.session = session

    def get_customer(self, customer_id: str, shop_id: str) -> Customer | None:
        return self.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()

    def create(self, sale: Sale, lines: list[OrderLine]) -> Sale:
        self.session.add(sale)
        self.session.flush()  # ensures sale.id is assigned without committing
        for line in lines:
            line.sale_id = sale.id
            self.session.add(line)
        self.session.flush()
        return sale

    def add_receipt(self, receipt: Receipt) -> Receipt:
        self.session.add(receipt)
        self.session.flush()
        return receipt


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session=None):
        self.session = session or db.session
        self.inventory = SqlAlchemyInventoryStore(self.session)
        self.ledger = SqlAlchemyLedgerStore(self.session)
        self.sales = SqlAlchemySalesStore(self.session)

    def begin(self) -> None:
        begin_write_transaction(self.session)

    def _commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
