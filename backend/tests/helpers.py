"""Request builders shared by the API tests."""


def actor_headers(role: str = "cashier", shop_id: str | None = None, actor_id: str = "user-1") -> dict:
    """Helper to create actor context headers."""
    headers = {"X-Actor-Role": role, "X-Actor-Id": actor_id}
    if shop_id is not None:
        headers["X-Shop-Id"] = shop_id
    return headers


def sale_payload(*items, **overrides) -> dict:
    """Build a checkout body from (product_id, quantity) pairs."""
    payload = {
        "order_items": [{"product_id": pid, "quantity": qty} for pid, qty in items],
        "payment_method": "cash",
        "delivery_status": "pending",
        "amount_paid_cents": 0,
        "change_given_cents": 0,
    }
    payload.update(overrides)
    return payload
