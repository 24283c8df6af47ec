# Overview: Pytest coverage for supplier CRUD and supplier-product links.

import pytest

from retailpos.models import SupplierProduct
from retailpos.services import supplier_service
from retailpos.services.exceptions import NotFoundError
from retailpos.validation import ConflictError, ValidationError

from helpers import actor_headers


@pytest.fixture
def supplier(db_session, shop):
    return supplier_service.create_supplier(
        shop_id=shop.id,
        patch={"name": "Sodecoton", "email": "Ventes@Sodecoton.cm", "city": "Garoua"},
    )


class TestSupplierService:

    def test_create_normalises_and_defaults_country(self, supplier):
        assert supplier["email"] == "ventes@sodecoton.cm"
        assert supplier["country"] == "Cameroon"
        assert supplier["product_count"] == 0

    def test_name_required(self, db_session, shop):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(shop_id=shop.id, patch={"name": "   "})

    def test_duplicate_name_in_shop_conflicts(self, db_session, shop, other_shop, supplier):
        with pytest.raises(ConflictError):
            supplier_service.create_supplier(shop_id=shop.id, patch={"name": "Sodecoton"})

        # Same name in another shop is fine
        elsewhere = supplier_service.create_supplier(shop_id=other_shop.id, patch={"name": "Sodecoton"})
        assert elsewhere["shop_id"] == other_shop.id

    def test_link_counts_products_and_stock_value(self, db_session, shop, product, make_product, supplier):
        oil = make_product(shop, quantity=4, purchase=900, name="Palm oil 1L")

        supplier_service.link_product(supplier_id=supplier["id"], product_id=product.id, shop_id=shop.id)
        linked = supplier_service.link_product(supplier_id=supplier["id"], product_id=oil.id, shop_id=shop.id)
        again = supplier_service.link_product(supplier_id=supplier["id"], product_id=oil.id, shop_id=shop.id)

        assert linked["product_count"] == 2
        assert linked["stock_value_cents"] == 10 * 600 + 4 * 900
        assert [p["name"] for p in linked["products"]] == ["Palm oil 1L", "Rice 5kg"]
        assert again["product_count"] == 2
        assert db_session.query(SupplierProduct).count() == 2

    def test_link_product_of_other_shop_not_found(self, db_session, other_shop, make_product, shop, supplier):
        foreign = make_product(other_shop)
        with pytest.raises(NotFoundError):
            supplier_service.link_product(supplier_id=supplier["id"], product_id=foreign.id, shop_id=shop.id)

    def test_unlink(self, db_session, shop, product, supplier):
        supplier_service.link_product(supplier_id=supplier["id"], product_id=product.id, shop_id=shop.id)

        after = supplier_service.unlink_product(supplier_id=supplier["id"], product_id=product.id, shop_id=shop.id)

        assert after["product_count"] == 0
        with pytest.raises(NotFoundError):
            supplier_service.unlink_product(supplier_id=supplier["id"], product_id=product.id, shop_id=shop.id)

    def test_supplier_with_deliveries_cannot_be_deleted(self, client, db_session, shop, product, supplier):
        client.post(
            f"/api/products/{product.id}/adjust",
            json={"delta": 10, "supplier_id": supplier["id"]},
            headers=actor_headers("manager", shop.id),
        )

        with pytest.raises(ConflictError):
            supplier_service.delete_supplier(supplier_id=supplier["id"], shop_id=shop.id)


class TestSuppliersApi:

    def test_crud_flow(self, client, db_session, shop, product):
        headers = actor_headers("manager", shop.id)

        created = client.post(
            "/api/suppliers",
            json={"name": "Brasseries du Cameroun", "phone": "+237233000000", "region": "Littoral"},
            headers=headers,
        )
        assert created.status_code == 201
        supplier_id = created.get_json()["id"]

        linked = client.post(f"/api/suppliers/{supplier_id}/products", json={"product_id": product.id}, headers=headers)
        assert linked.status_code == 200
        assert linked.get_json()["product_count"] == 1

        updated = client.patch(f"/api/suppliers/{supplier_id}", json={"city": "Douala"}, headers=headers)
        assert updated.status_code == 200
        assert updated.get_json()["city"] == "Douala"
        assert updated.get_json()["name"] == "Brasseries du Cameroun"

        detail = client.get(f"/api/suppliers/{supplier_id}", headers=actor_headers("cashier", shop.id))
        assert detail.status_code == 200
        assert detail.get_json()["products"][0]["id"] == product.id

        listing = client.get("/api/suppliers?search=douala", headers=headers).get_json()
        assert listing["count"] == 1

        deleted = client.delete(f"/api/suppliers/{supplier_id}", headers=headers)
        assert deleted.status_code == 204
        assert client.get(f"/api/suppliers/{supplier_id}", headers=headers).status_code == 404
        assert db_session.query(SupplierProduct).count() == 0

    def test_cashier_can_read_but_not_write(self, client, db_session, shop, supplier):
        headers = actor_headers("cashier", shop.id)

        assert client.get("/api/suppliers", headers=headers).status_code == 200
        assert client.post("/api/suppliers", json={"name": "X"}, headers=headers).status_code == 403
        assert client.delete(f"/api/suppliers/{supplier['id']}", headers=headers).status_code == 403

    def test_other_shop_cannot_see_supplier(self, client, db_session, other_shop, supplier):
        resp = client.get(f"/api/suppliers/{supplier['id']}", headers=actor_headers("manager", other_shop.id))
        assert resp.status_code == 404

    def test_duplicate_and_invalid(self, client, db_session, shop, supplier):
        headers = actor_headers("manager", shop.id)

        assert client.post("/api/suppliers", json={"name": "Sodecoton"}, headers=headers).status_code == 409
        assert client.post("/api/suppliers", json={"name": 42}, headers=headers).status_code == 400
        assert client.post(f"/api/suppliers/{supplier['id']}/products", json={}, headers=headers).status_code == 400

    def test_delete_blocked_by_delivery_is_409(self, client, db_session, shop, product, supplier):
        headers = actor_headers("manager", shop.id)
        client.post(f"/api/products/{product.id}/adjust", json={"delta": 1, "supplier_id": supplier["id"]}, headers=headers)

        assert client.delete(f"/api/suppliers/{supplier['id']}", headers=headers).status_code == 409
