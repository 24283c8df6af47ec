# Overview: Counter (POS) checkout - the sale coordinator plus a receipt written in the same transaction.

from __future__ import annotations

import logging
from dataclasses import replace

from ..models import Receipt
from ..time_utils import to_utc_z
from . import inventory_service
from .checkout_service import CreateSaleRequest, SaleResult, failure_result, place_order
from .exceptions import CheckoutError
from .ledger_service import SALES_REVENUE_CODE
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

# Goods leave the counter with the customer
POS_DELIVERY_STATUS = "delivered"


def build_receipt_payload(outcome, receipt: Receipt, request: CreateSaleRequest, customer=None) -> dict:
    """Receipt data handed to the printer formatter."""
    sale = outcome.sale
    return {
        "sale_id": sale.id,
        "receipt_id": receipt.id,
        "date": to_utc_z(sale.created_at),
        "items": [
            {
                "name": outcome.products[line.product_id].name,
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price_cents,
                "line_total_cents": line.line_total_cents,
            }
            for line in outcome.lines
        ],
        "customer_name": customer.name if customer else None,
        "customer_phone": customer.phone if customer else None,
        "subtotal_cents": sale.subtotal_cents,
        "discount_cents": sale.discount_cents,
        "total_cents": sale.net_amount_cents,
        "amount_paid_cents": sale.amount_paid_cents,
        "change_cents": sale.change_given_cents,
        "payment_method": sale.payment_method,
        "sales_person_id": request.actor_id,
    }


def create_pos_sale(
    request: CreateSaleRequest,
    uow: UnitOfWork,
    *,
    revenue_code: str = SALES_REVENUE_CODE,
) -> tuple[SaleResult, dict | None]:
    """
    Counter checkout: sale + income + stock + receipt, all or nothing.

    Returns (SaleResult, receipt payload or None on failure).
    """
    request = replace(request, delivery_status=POS_DELIVERY_STATUS)

    try:
        with uow:
            outcome = place_order(request, uow, revenue_code=revenue_code)
            receipt = uow.sales.add_receipt(Receipt(
                sale_id=outcome.sale.id,
                amount_cents=outcome.sale.net_amount_cents,
                status="paid",
            ))
            customer = (
                uow.sales.get_customer(request.customer_id, request.shop_id)
                if request.customer_id else None
            )
            receipt_payload = build_receipt_payload(outcome, receipt, request, customer)
            uow.commit()
    except CheckoutError as e:
        logger.info("POS checkout rejected for shop %s: %s", request.shop_id, e)
        return failure_result(e), None
    except Exception as e:
        logger.exception("POS checkout failed for shop %s", request.shop_id)
        return failure_result(e), None

    result = SaleResult(
        success=True,
        sale=outcome.sale.to_dict(),
        lines=[line.to_dict() for line in outcome.lines],
    )
    return result, receipt_payload


def list_pos_products(shop_id: str, category_id: str | None = None, search: str | None = None) -> list[dict]:
    """In-stock products for the counter grid, ordered by name."""
    return inventory_service.list_sellable_products(shop_id, category_id=category_id, search=search)
