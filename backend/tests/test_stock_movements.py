# Overview: Pytest coverage for the stock movement audit trail.

"""
Stock Movement Tests

Every quantity change leaves exactly one movement row, written in the same
transaction as the change:
- checkout line -> sold / outbound, referencing the sale
- approved return -> returned / inbound, referencing the return
- restock -> added / inbound (optionally naming the supplier)
- downward correction -> adjustment / outbound
Failed operations leave no movement behind.
"""

from retailpos.models import StockMovement, Supplier
from retailpos.services import return_service

from helpers import actor_headers, sale_payload


def _movements(db_session):
    db_session.expire_all()
    return db_session.query(StockMovement).order_by(StockMovement.occurred_at.asc()).all()


class TestMovementsWritten:

    def test_checkout_writes_one_sold_movement_per_line(self, client, db_session, ohada_codes, shop, product, make_product):
        other = make_product(shop, quantity=4, purchase=250)

        resp = client.post(
            "/api/sales",
            json=sale_payload((product.id, 2), (other.id, 1)),
            headers=actor_headers("cashier", shop.id, actor_id="cashier-7"),
        )
        assert resp.status_code == 201
        sale_id = resp.get_json()["sale"]["id"]

        rows = _movements(db_session)
        assert len(rows) == 2
        by_product = {m.product_id: m for m in rows}

        rice = by_product[product.id]
        assert (rice.movement_type, rice.direction) == ("sold", "outbound")
        assert rice.quantity == 2
        assert rice.quantity_after == 8
        assert rice.reference == sale_id
        assert rice.cost_per_unit_cents == 600
        assert rice.total_cost_cents == 1200
        assert rice.performed_by == "cashier-7"
        assert by_product[other.id].total_cost_cents == 250

    def test_failed_checkout_writes_nothing(self, client, db_session, ohada_codes, shop, product):
        resp = client.post(
            "/api/sales",
            json=sale_payload((product.id, 2), (product.id, 9)),
            headers=actor_headers("cashier", shop.id),
        )

        assert resp.status_code == 409
        assert _movements(db_session) == []

    def test_restock_and_correction(self, client, db_session, product):
        headers = actor_headers("manager", product.shop_id, actor_id="mgr-1")

        client.post(f"/api/products/{product.id}/adjust", json={"delta": 5, "reason": "Delivery"}, headers=headers)
        client.post(f"/api/products/{product.id}/adjust", json={"delta": -2, "reason": "Damaged"}, headers=headers)

        added, corrected = _movements(db_session)
        assert (added.movement_type, added.direction, added.quantity, added.quantity_after) == ("added", "inbound", 5, 15)
        assert added.reason == "Delivery"
        assert added.performed_by == "mgr-1"
        assert (corrected.movement_type, corrected.direction, corrected.quantity) == ("adjustment", "outbound", 2)
        assert corrected.quantity_after == 13

    def test_rejected_correction_writes_nothing(self, client, db_session, product):
        resp = client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": -50},
            headers=actor_headers("manager", product.shop_id),
        )

        assert resp.status_code == 409
        assert _movements(db_session) == []

    def test_restock_names_supplier(self, client, db_session, shop, product):
        supplier = Supplier(shop_id=shop.id, name="Sodecoton")
        db_session.add(supplier)
        db_session.commit()

        resp = client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": 20, "supplier_id": supplier.id},
            headers=actor_headers("manager", shop.id),
        )

        assert resp.status_code == 200
        assert _movements(db_session)[0].supplier_id == supplier.id

    def test_unknown_supplier_rejected_without_stock_change(self, client, db_session, product):
        resp = client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": 20, "supplier_id": "nope"},
            headers=actor_headers("manager", product.shop_id),
        )

        assert resp.status_code == 404
        assert _movements(db_session) == []

    def test_supplier_on_correction_rejected(self, client, db_session, shop, product):
        supplier = Supplier(shop_id=shop.id, name="Sodecoton")
        db_session.add(supplier)
        db_session.commit()

        resp = client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": -1, "supplier_id": supplier.id},
            headers=actor_headers("manager", shop.id),
        )
        assert resp.status_code == 400

    def test_approved_return_writes_returned_movement(self, client, db_session, ohada_codes, shop, product):
        sold = client.post(
            "/api/sales",
            json=sale_payload((product.id, 3)),
            headers=actor_headers("cashier", shop.id),
        ).get_json()
        ret = return_service.create_return(
            shop_id=shop.id, order_line_id=sold["lines"][0]["id"], quantity=2, reason="Torn bag",
        )
        return_service.approve_return(return_id=ret["id"], shop_id=shop.id, resolved_by="mgr-1")

        rows = _movements(db_session)
        assert [m.movement_type for m in rows] == ["sold", "returned"]
        returned = rows[1]
        assert returned.direction == "inbound"
        assert returned.quantity == 2
        assert returned.quantity_after == 9
        assert returned.reference == ret["id"]
        assert returned.reason == "Torn bag"
        assert returned.performed_by == "mgr-1"

    def test_rejected_return_writes_nothing(self, client, db_session, ohada_codes, shop, product):
        sold = client.post(
            "/api/sales",
            json=sale_payload((product.id, 1)),
            headers=actor_headers("cashier", shop.id),
        ).get_json()
        ret = return_service.create_return(
            shop_id=shop.id, order_line_id=sold["lines"][0]["id"], quantity=1, reason="Changed mind",
        )
        return_service.reject_return(return_id=ret["id"], shop_id=shop.id)

        assert [m.movement_type for m in _movements(db_session)] == ["sold"]


class TestMovementsApi:

    def test_filter_by_product_and_type(self, client, db_session, ohada_codes, shop, product, make_product):
        other = make_product(shop, quantity=5)
        headers = actor_headers("manager", shop.id)
        client.post("/api/sales", json=sale_payload((product.id, 1), (other.id, 1)), headers=headers)
        client.post(f"/api/products/{product.id}/adjust", json={"delta": 3}, headers=headers)

        everything = client.get("/api/products/movements", headers=headers).get_json()
        assert everything["count"] == 3
        # Newest first
        assert everything["items"][0]["movement_type"] == "added"
        assert everything["items"][0]["product_name"] == "Rice 5kg"

        rice = client.get(f"/api/products/movements?product_id={product.id}", headers=headers).get_json()
        assert rice["count"] == 2

        sold = client.get("/api/products/movements?type=sold", headers=headers).get_json()
        assert {m["product_id"] for m in sold["items"]} == {product.id, other.id}

    def test_date_range_is_inclusive(self, client, db_session, product):
        headers = actor_headers("manager", product.shop_id)
        client.post(f"/api/products/{product.id}/adjust", json={"delta": 1}, headers=headers)
        occurred = client.get("/api/products/movements", headers=headers).get_json()["items"][0]["occurred_at"]

        hit = client.get(
            f"/api/products/movements?date_from={occurred[:10]}&date_to=2999-01-01", headers=headers,
        ).get_json()
        miss = client.get("/api/products/movements?date_to=2000-01-01", headers=headers).get_json()

        assert hit["count"] == 1
        assert miss["count"] == 0

    def test_paginated(self, client, db_session, product):
        headers = actor_headers("manager", product.shop_id)
        for _ in range(3):
            client.post(f"/api/products/{product.id}/adjust", json={"delta": 1}, headers=headers)

        page = client.get("/api/products/movements?page=2&per_page=2", headers=headers).get_json()

        assert page["count"] == 1
        assert page["pagination"]["total"] == 3
        assert page["pagination"]["has_prev"] is True

    def test_shop_scoped(self, client, db_session, other_shop, product):
        client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": 1},
            headers=actor_headers("manager", product.shop_id),
        )

        resp = client.get("/api/products/movements", headers=actor_headers("manager", other_shop.id))
        assert resp.get_json()["count"] == 0

    def test_bad_filters_are_400(self, client, db_session, shop):
        headers = actor_headers("manager", shop.id)

        assert client.get("/api/products/movements?type=stolen", headers=headers).status_code == 400
        assert client.get("/api/products/movements?date_from=soon", headers=headers).status_code == 400
