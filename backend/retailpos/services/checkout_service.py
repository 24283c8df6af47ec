# Overview: Sale creation coordinator - one atomic unit of work producing the sale, its income entry and updated stock.

"""
Checkout Invariants (authoritative)

For a successful checkout, all of the following become visible together
(one transaction) and none of them otherwise:

- one Sale with status 'completed' whose
    net_amount_cents == sum(q * selling_price) - discount + delivery_fee
  computed from stored product prices (client totals are display hints),
- one OrderLine per cart line,
- exactly one IncomeEntry under OHADA code 701 with amount == net amount and
  a description naming the sale id,
- for every line, product.quantity reduced by q (never below zero) and
  product.status re-derived from the new quantity,
- one "sold" StockMovement per line referencing the sale.

Steps run strictly in order: later steps depend on earlier results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..models import (
    IncomeEntry, OrderLine, Product, Sale,
    DELIVERY_STATUSES, PAYMENT_METHODS,
)
from ..time_utils import utcnow
from ..validation import ValidationError, coerce_cents, coerce_choice, coerce_int
from .exceptions import (
    CheckoutError,
    InvalidSaleRequest,
    LedgerConfigurationError,
    ProductNotFound,
)
from .inventory_service import build_movement
from .ledger_service import SALES_REVENUE_CODE
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to create sale"


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreateSaleRequest:
    """Caller intent for one checkout."""
    order_items: tuple[OrderItemRequest, ...]
    payment_method: str
    delivery_status: str
    amount_paid_cents: int
    change_given_cents: int
    shop_id: str
    customer_id: str | None = None
    discount_cents: int = 0
    delivery_fee_cents: int = 0
    # Display total computed by the client; never used for booking
    expected_net_amount_cents: int | None = None
    actor_id: str | None = None

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        *,
        shop_id: str | None = None,
        actor_id: str | None = None,
        delivery_status: str | None = None,
    ) -> "CreateSaleRequest":
        """
        Build a request from a JSON body.

        shop_id/actor_id from the caller's context win over the body.
        Raises InvalidSaleRequest on any malformed field.
        """
        if not isinstance(payload, dict):
            raise InvalidSaleRequest("Invalid JSON payload")

        try:
            raw_items = payload.get("order_items")
            if not isinstance(raw_items, list) or not raw_items:
                raise ValidationError("order_items must be a non-empty list")

            items = []
            for i, raw in enumerate(raw_items):
                if not isinstance(raw, dict):
                    raise ValidationError(f"order_items[{i}] must be an object")
                product_id = raw.get("product_id")
                if not isinstance(product_id, str) or not product_id.strip():
                    raise ValidationError(f"order_items[{i}].product_id is required")
                quantity = coerce_int(raw.get("quantity"), f"order_items[{i}].quantity")
                if quantity <= 0:
                    raise ValidationError(f"order_items[{i}].quantity must be > 0")
                items.append(OrderItemRequest(product_id=product_id.strip(), quantity=quantity))

            customer_id = payload.get("customer_id")
            customer = payload.get("customer")
            if customer_id is None and isinstance(customer, dict):
                customer_id = customer.get("id")
            if customer_id is not None and not isinstance(customer_id, str):
                raise ValidationError("customer_id must be a string")

            expected = payload.get("expected_net_amount_cents")
            resolved_shop = shop_id or payload.get("shop_id")
            if not isinstance(resolved_shop, str) or not resolved_shop:
                raise ValidationError("shop_id is required")

            return cls(
                order_items=tuple(items),
                payment_method=coerce_choice(payload.get("payment_method"), "payment_method", PAYMENT_METHODS),
                delivery_status=coerce_choice(
                    delivery_status or payload.get("delivery_status"), "delivery_status", DELIVERY_STATUSES
                ),
                amount_paid_cents=coerce_cents(payload.get("amount_paid_cents"), "amount_paid_cents"),
                change_given_cents=coerce_cents(payload.get("change_given_cents"), "change_given_cents", default=0),
                shop_id=resolved_shop,
                customer_id=customer_id or None,
                discount_cents=coerce_cents(payload.get("discount_cents"), "discount_cents", default=0),
                delivery_fee_cents=coerce_cents(payload.get("delivery_fee_cents"), "delivery_fee_cents", default=0),
                expected_net_amount_cents=(
                    None if expected is None else coerce_int(expected, "expected_net_amount_cents")
                ),
                actor_id=actor_id or payload.get("actor_id"),
            )
        except ValidationError as e:
            raise InvalidSaleRequest(str(e))


@dataclass
class SaleResult:
    success: bool
    sale: dict | None = None
    lines: list[dict] = field(default_factory=list)
    error: str | None = None
    error_code: str | None = None
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "sale": self.sale, "lines": self.lines}
        out = {"success": False, "error": self.error, "error_code": self.error_code}
        if self.details:
            out["details"] = self.details
        return out


@dataclass
class CheckoutOutcome:
    """Objects written by place_order, still inside the open transaction."""
    sale: Sale
    lines: list[OrderLine]
    products: dict[str, Product]
    income: IncomeEntry


def _validate_amounts(request: CreateSaleRequest) -> None:
    if not request.order_items:
        raise InvalidSaleRequest("order_items must be a non-empty list")
    for item in request.order_items:
        if item.quantity <= 0:
            raise InvalidSaleRequest(f"quantity must be > 0 for product {item.product_id}")
    for name in ("amount_paid_cents", "change_given_cents", "discount_cents", "delivery_fee_cents"):
        if getattr(request, name) < 0:
            raise InvalidSaleRequest(f"{name} must be >= 0")


def place_order(
    request: CreateSaleRequest,
    uow: UnitOfWork,
    *,
    revenue_code: str = SALES_REVENUE_CODE,
) -> CheckoutOutcome:
    """
    Write one checkout into an already-open unit of work. Does not commit.

    Raises a CheckoutError subclass (or a persistence error) on failure;
    the caller's unit of work rolls back.
    """
    _validate_amounts(request)

    if request.customer_id is not None:
        if uow.sales.get_customer(request.customer_id, request.shop_id) is None:
            raise InvalidSaleRequest("Customer not found", details={"customer_id": request.customer_id})

    # Resolve every product before any write
    products: dict[str, Product] = {}
    subtotal = 0
    profit = 0
    lines: list[OrderLine] = []
    for item in request.order_items:
        product = products.get(item.product_id) or uow.inventory.get_product(item.product_id, request.shop_id)
        if product is None:
            raise ProductNotFound(item.product_id)
        products[item.product_id] = product

        line_total = item.quantity * product.selling_price_cents
        subtotal += line_total
        profit += item.quantity * (product.selling_price_cents - product.purchase_price_cents)
        lines.append(OrderLine(
            product_id=product.id,
            quantity=item.quantity,
            unit_price_cents=product.selling_price_cents,
            line_total_cents=line_total,
            payment_status="paid",
        ))

    net_amount = subtotal - request.discount_cents + request.delivery_fee_cents
    if net_amount < 0:
        raise InvalidSaleRequest(
            "Net amount cannot be negative",
            details={"subtotal_cents": subtotal, "discount_cents": request.discount_cents},
        )

    if request.expected_net_amount_cents is not None and request.expected_net_amount_cents != net_amount:
        logger.warning(
            "Client total %s differs from computed net amount %s for shop %s; using computed value",
            request.expected_net_amount_cents, net_amount, request.shop_id,
        )

    sale = uow.sales.create(
        Sale(
            shop_id=request.shop_id,
            status="completed",
            delivery_status=request.delivery_status,
            customer_id=request.customer_id,
            subtotal_cents=subtotal,
            net_amount_cents=net_amount,
            amount_paid_cents=request.amount_paid_cents,
            change_given_cents=request.change_given_cents,
            delivery_fee_cents=request.delivery_fee_cents,
            discount_cents=request.discount_cents,
            profit_cents=profit,
            payment_method=request.payment_method,
            created_by=request.actor_id,
        ),
        lines,
    )

    code = uow.ledger.find_code(revenue_code)
    if code is None:
        raise LedgerConfigurationError(revenue_code)

    income = uow.ledger.append(IncomeEntry(
        shop_id=request.shop_id,
        ohada_code_id=code.id,
        sale_id=sale.id,
        date=utcnow(),
        description=f"Sales revenue - Order #{sale.id}",
        amount_cents=net_amount,
        payment_method=request.payment_method,
    ))

    for item in request.order_items:
        product = uow.inventory.apply_decrement(item.product_id, item.quantity)
        products[item.product_id] = product
        uow.inventory.record_movement(build_movement(
            product, "sold", item.quantity,
            reference=sale.id, performed_by=request.actor_id,
        ))

    return CheckoutOutcome(sale=sale, lines=lines, products=products, income=income)


def failure_result(exc: Exception) -> SaleResult:
    """Map an exception raised inside checkout to a failure result."""
    if isinstance(exc, CheckoutError):
        return SaleResult(success=False, error=str(exc), error_code=exc.code, details=exc.details)
    # Persistence/unexpected errors are not described to the caller
    return SaleResult(success=False, error=GENERIC_FAILURE, error_code=CheckoutError.code)


def create_sale(
    request: CreateSaleRequest,
    uow: UnitOfWork,
    *,
    revenue_code: str = SALES_REVENUE_CODE,
) -> SaleResult:
    """
    Atomically create a sale, its income entry and the stock decrements.

    Never raises: every failure is rolled back and reported as
    SaleResult(success=False).
    """
    try:
        with uow:
            outcome = place_order(request, uow, revenue_code=revenue_code)
            uow.commit()
    except CheckoutError as e:
        logger.info("Checkout rejected for shop %s: %s", request.shop_id, e)
        return failure_result(e)
    except Exception as e:
        logger.exception("Checkout failed for shop %s", request.shop_id)
        return failure_result(e)

    logger.info(
        "Sale %s completed shop=%s net=%s lines=%s",
        outcome.sale.id, request.shop_id, outcome.sale.net_amount_cents, len(outcome.lines),
    )
    return SaleResult(
        success=True,
        sale=outcome.sale.to_dict(),
        lines=[line.to_dict() for line in outcome.lines],
    )
