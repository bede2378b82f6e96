import pytest

from storefront.errors import ProviderError
from storefront.payments import service as payments_service


def test_checkout_builds_session_from_cart(store, fake_stripe):
    a = store.add_product("Mug", 10.0, stock=5, images=["https://img/mug.png"])
    store.put_in_cart("u1", a["id"], 2)
    cart_id = store.get_cart_by_user("u1")["id"]

    res = payments_service.create_checkout_session("u1", "https://shop/success", "https://shop/cart")

    assert res.success is True
    assert res.data["id"] == "cs_test_1"
    assert res.data["url"].endswith("cs_test_1")
    call = fake_stripe.created[0]
    assert call["metadata"] == {"cart_id": cart_id, "user_id": "u1"}
    assert call["line_items"][0]["quantity"] == 2
    assert call["line_items"][0]["price_data"]["unit_amount"] == 1000
    assert call["success_url"] == "https://shop/success"


def test_checkout_empty_cart_makes_no_provider_call(store, fake_stripe):
    res = payments_service.create_checkout_session("u1", "s", "c")

    assert res.success is False
    assert res.code == "empty_cart"
    assert res.status_code == 400
    assert fake_stripe.created == []


def test_checkout_requires_user(store, fake_stripe):
    assert payments_service.create_checkout_session(None, "s", "c").code == "unauthenticated"


def test_checkout_provider_error(store, monkeypatch):
    a = store.add_product("Mug", 10.0, stock=5)
    store.put_in_cart("u1", a["id"], 1)

    def boom(**kwargs):
        raise ProviderError()
    monkeypatch.setattr("storefront.payments.stripe_client.create_session", boom)

    res = payments_service.create_checkout_session("u1", "s", "c")

    assert res.code == "provider_error"
    assert res.status_code == 502


def test_default_redirect_urls(monkeypatch):
    monkeypatch.setattr("storefront.config.BASE_URL", "https://shop.example")
    success, cancel = payments_service.default_redirect_urls()
    assert success == "https://shop.example/success?session_id={CHECKOUT_SESSION_ID}"
    assert cancel == "https://shop.example/cart"


def test_handle_event_ignores_other_types(monkeypatch):
    called = []
    monkeypatch.setattr("storefront.orders.service.materialize_order", lambda sid: called.append(sid))
    assert payments_service.handle_event({"type": "payment_intent.created"}) is None
    assert called == []


def test_handle_event_materializes_completed_session(monkeypatch):
    monkeypatch.setattr("storefront.orders.service.materialize_order", lambda sid: {"id": "o1", "session": sid})
    event = {"type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}}
    assert payments_service.handle_event(event) == {"id": "o1", "session": "cs_1"}


def test_confirm_checkout_checks_owner(store, fake_stripe):
    a = store.add_product("Mug", 10.0, stock=5)
    store.put_in_cart("u1", a["id"], 1)
    created = payments_service.create_checkout_session("u1", "s", "c")
    sid = created.data["id"]
    fake_stripe.complete(sid)

    denied = payments_service.confirm_checkout(sid, "intruder")
    assert denied.code == "forbidden"
    assert store.orders == {}

    ok = payments_service.confirm_checkout(sid, "u1")
    again = payments_service.confirm_checkout(sid, "u1")
    assert ok.success is True
    assert again.data["id"] == ok.data["id"]
    assert len(store.orders) == 1


def test_confirm_checkout_refuses_unpaid_session(store, fake_stripe):
    a = store.add_product("Mug", 10.0, stock=5)
    store.put_in_cart("u1", a["id"], 3)
    sid = payments_service.create_checkout_session("u1", "s", "c").data["id"]
    # Checkout ouvert puis abandonné: jamais payé
    fake_stripe.sessions[sid]["status"] = "open"

    res = payments_service.confirm_checkout(sid, "u1")

    assert res.success is False
    assert res.code == "invalid_input"
    assert store.orders == {}
    assert store.products[a["id"]]["stock"] == 5
    assert len(store.cart_items) == 1
