# Overview: Pytest coverage for the checkout coordinator against in-memory stores.

"""
Checkout Coordinator Tests

The coordinator is exercised through FakeUnitOfWork so every failure path
can be checked for all-or-nothing behavior without a database:
1. Happy path books sale, lines, one income entry and stock decrements
2. Any failure leaves stock, ledger and sales exactly as before
3. Caller-supplied totals never change what is booked
"""

import logging

import pytest

from retailpos.models import Customer, OhadaCode, Product
from retailpos.services.checkout_service import (
    CreateSaleRequest,
    OrderItemRequest,
    create_sale,
    GENERIC_FAILURE,
)
from retailpos.services.exceptions import InvalidSaleRequest
from retailpos.services.inventory_service import derive_stock_status
from retailpos.services.pos_service import create_pos_sale

from fakes import FakeUnitOfWork

SHOP = "shop-1"


def _product(pid, quantity, selling=1000, purchase=600, reorder_point=5, shop_id=SHOP):
    return Product(
        id=pid,
        shop_id=shop_id,
        sku=f"SKU-{pid}",
        name=f"Product {pid}",
        selling_price_cents=selling,
        purchase_price_cents=purchase,
        quantity=quantity,
        reorder_point=reorder_point,
        status=derive_stock_status(quantity, reorder_point),
    )


def _code_701():
    return OhadaCode(id="code-701", code="701", name="Ventes de marchandises", type="income")


def _request(*items, **kwargs):
    fields = dict(
        order_items=tuple(OrderItemRequest(pid, qty) for pid, qty in items),
        payment_method="cash",
        delivery_status="pending",
        amount_paid_cents=0,
        change_given_cents=0,
        shop_id=SHOP,
    )
    fields.update(kwargs)
    return CreateSaleRequest(**fields)


class TestCreateSaleHappyPath:

    def test_two_units_books_sale_income_and_stock(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 2), amount_paid_cents=2000), uow)

        assert result.success is True
        assert result.sale["net_amount_cents"] == 2000
        assert result.sale["subtotal_cents"] == 2000
        assert result.sale["profit_cents"] == 800
        assert result.sale["status"] == "completed"
        assert len(result.lines) == 1
        assert result.lines[0]["unit_price_cents"] == 1000
        assert result.lines[0]["payment_status"] == "paid"

        assert p1.quantity == 8
        assert p1.status == "medium_stock"

        assert len(uow.ledger.entries) == 1
        income = uow.ledger.entries[0]
        assert income.amount_cents == 2000
        assert income.ohada_code_id == "code-701"
        assert income.sale_id == result.sale["id"]
        assert result.sale["id"] in income.description

        assert len(uow.inventory.movements) == 1
        sold = uow.inventory.movements[0]
        assert (sold.movement_type, sold.direction) == ("sold", "outbound")
        assert sold.quantity == 2
        assert sold.quantity_after == 8
        assert sold.reference == result.sale["id"]
        assert sold.total_cost_cents == 1200
        assert uow.commits == 1

    def test_selling_all_stock_marks_out_of_stock(self):
        p1 = _product("p1", 6)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 6)), uow)

        assert result.success is True
        assert p1.quantity == 0
        assert p1.status == "out_of_stock"

    def test_discount_and_delivery_fee_applied_to_net(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 3), discount_cents=500, delivery_fee_cents=200), uow)

        assert result.success is True
        assert result.sale["subtotal_cents"] == 3000
        assert result.sale["net_amount_cents"] == 2700
        assert uow.ledger.entries[0].amount_cents == 2700

    def test_same_product_twice_decrements_both_lines(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 2), ("p1", 3)), uow)

        assert result.success is True
        assert len(result.lines) == 2
        assert p1.quantity == 5
        assert [m.quantity_after for m in uow.inventory.movements] == [8, 5]

    def test_client_total_mismatch_uses_computed_amount(self, caplog):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        with caplog.at_level(logging.WARNING, logger="retailpos.services.checkout_service"):
            result = create_sale(_request(("p1", 2), expected_net_amount_cents=1), uow)

        assert result.success is True
        assert result.sale["net_amount_cents"] == 2000
        assert uow.ledger.entries[0].amount_cents == 2000
        assert "differs from computed net amount" in caplog.text

    def test_known_customer_is_attached(self):
        p1 = _product("p1", 10)
        c = Customer(id="c1", shop_id=SHOP, name="Awa")
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()], customers=[c])

        result = create_sale(_request(("p1", 1), customer_id="c1"), uow)

        assert result.success is True
        assert result.sale["customer_id"] == "c1"


class TestCreateSaleRollback:

    def _assert_untouched(self, uow, product, quantity):
        assert product.quantity == quantity
        assert uow.ledger.entries == []
        assert uow.sales.sales == []
        assert uow.sales.lines == []
        assert uow.inventory.movements == []
        assert uow.commits == 0
        assert uow.rollbacks == 1

    def test_unknown_product_rolls_back_everything(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 2), ("missing", 1)), uow)

        assert result.success is False
        assert result.error_code == "PRODUCT_NOT_FOUND"
        self._assert_untouched(uow, p1, 10)

    def test_product_from_other_shop_is_not_found(self):
        p1 = _product("p1", 10, shop_id="other-shop")
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 1)), uow)

        assert result.success is False
        assert result.error_code == "PRODUCT_NOT_FOUND"

    def test_insufficient_stock_on_second_line_undoes_first(self):
        p1 = _product("p1", 10)
        p2 = _product("p2", 1)
        uow = FakeUnitOfWork(products=[p1, p2], codes=[_code_701()])

        result = create_sale(_request(("p1", 2), ("p2", 5)), uow)

        assert result.success is False
        assert result.error_code == "INSUFFICIENT_STOCK"
        assert result.details["available"] == 1
        self._assert_untouched(uow, p1, 10)
        assert p2.quantity == 1
        assert p1.status == derive_stock_status(10, 5)

    def test_missing_revenue_code_fails_closed(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[])

        result = create_sale(_request(("p1", 1)), uow)

        assert result.success is False
        assert result.error_code == "LEDGER_CONFIGURATION"
        self._assert_untouched(uow, p1, 10)

    def test_unexpected_store_error_reports_generic_failure(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])
        uow.ledger.fail_on_append = True

        result = create_sale(_request(("p1", 1)), uow)

        assert result.success is False
        assert result.error == GENERIC_FAILURE
        assert "ledger unavailable" not in (result.error or "")
        self._assert_untouched(uow, p1, 10)

    def test_unknown_customer_rejected(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 1), customer_id="ghost"), uow)

        assert result.success is False
        assert result.error_code == "INVALID_REQUEST"
        self._assert_untouched(uow, p1, 10)

    def test_discount_larger_than_subtotal_rejected(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result = create_sale(_request(("p1", 1), discount_cents=5000), uow)

        assert result.success is False
        assert result.error_code == "INVALID_REQUEST"
        self._assert_untouched(uow, p1, 10)


class TestCreateSaleRequestParsing:

    def test_empty_items_rejected(self):
        with pytest.raises(InvalidSaleRequest):
            CreateSaleRequest.from_payload(
                {"order_items": [], "payment_method": "cash", "delivery_status": "pending",
                 "amount_paid_cents": 0},
                shop_id=SHOP,
            )

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidSaleRequest):
            CreateSaleRequest.from_payload(
                {"order_items": [{"product_id": "p1", "quantity": 0}], "payment_method": "cash",
                 "delivery_status": "pending", "amount_paid_cents": 0},
                shop_id=SHOP,
            )

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(InvalidSaleRequest):
            CreateSaleRequest.from_payload(
                {"order_items": [{"product_id": "p1", "quantity": 1}], "payment_method": "barter",
                 "delivery_status": "pending", "amount_paid_cents": 0},
                shop_id=SHOP,
            )

    def test_customer_object_and_context_shop(self):
        req = CreateSaleRequest.from_payload(
            {
                "order_items": [{"product_id": "p1", "quantity": 2}],
                "payment_method": "mobile_money",
                "delivery_status": "pending",
                "amount_paid_cents": 2000,
                "customer": {"id": "c1"},
            },
            shop_id=SHOP,
            actor_id="cashier-7",
        )
        assert req.customer_id == "c1"
        assert req.shop_id == SHOP
        assert req.actor_id == "cashier-7"
        assert req.order_items == (OrderItemRequest("p1", 2),)


class TestPosSale:

    def test_pos_sale_writes_receipt_and_forces_delivered(self):
        p1 = _product("p1", 10)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result, receipt = create_pos_sale(
            _request(("p1", 2), amount_paid_cents=5000, change_given_cents=3000, actor_id="cashier-1"),
            uow,
        )

        assert result.success is True
        assert result.sale["delivery_status"] == "delivered"
        assert len(uow.sales.receipts) == 1
        assert uow.sales.receipts[0].amount_cents == 2000
        assert receipt["total_cents"] == 2000
        assert receipt["change_cents"] == 3000
        assert receipt["sales_person_id"] == "cashier-1"
        assert receipt["items"] == [
            {"name": "Product p1", "quantity": 2, "unit_price_cents": 1000, "line_total_cents": 2000}
        ]

    def test_pos_failure_returns_no_receipt(self):
        p1 = _product("p1", 1)
        uow = FakeUnitOfWork(products=[p1], codes=[_code_701()])

        result, receipt = create_pos_sale(_request(("p1", 2)), uow)

        assert result.success is False
        assert receipt is None
        assert uow.sales.receipts == []
        assert p1.quantity == 1
