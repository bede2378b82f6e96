import pytest
from unittest.mock import MagicMock

import storefront.cart.repository as cart_repo
import storefront.orders.repository as orders_repo
import storefront.products.repository as products_repo


class _Resp:
    def __init__(self, data=None):
        self.data = data


def _client_returning(data):
    # Toute chaîne table().select().eq()...execute() renvoie _Resp(data)
    client = MagicMock()
    chain = MagicMock()
    client.table.return_value = chain
    for name in ("select", "insert", "update", "delete", "eq", "neq", "limit", "order"):
        getattr(chain, name).return_value = chain
    chain.execute.return_value = _Resp(data)
    return client, chain


def _raising():
    raise Exception("boom")


def test_get_cart_by_user_first_row(monkeypatch):
    client, chain = _client_returning([{"id": "c1", "user_id": "u1"}])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    assert cart_repo.get_cart_by_user("u1") == {"id": "c1", "user_id": "u1"}
    client.table.assert_called_with("carts")
    chain.eq.assert_called_with("user_id", "u1")


def test_get_cart_by_user_empty_and_error(monkeypatch):
    client, _ = _client_returning([])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)
    assert cart_repo.get_cart_by_user("u1") is None

    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", _raising)
    assert cart_repo.get_cart_by_user("u1") is None


def test_insert_cart_item_payload(monkeypatch):
    client, chain = _client_returning([{"id": "i1", "quantity": 2}])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    assert cart_repo.insert_cart_item("c1", "p1", 2) == {"id": "i1", "quantity": 2}
    chain.insert.assert_called_with({"cart_id": "c1", "product_id": "p1", "quantity": 2})


def test_delete_cart_removes_items_then_cart(monkeypatch):
    client, chain = _client_returning([])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    assert cart_repo.delete_cart("c1") is True
    assert [c.args[0] for c in client.table.call_args_list] == ["cart_items", "carts"]

    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", _raising)
    assert cart_repo.delete_cart("c1") is False


def test_insert_order_items_rows(monkeypatch):
    client, chain = _client_returning([{"id": "oi1"}])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    rows = orders_repo.insert_order_items("o1", [{"product_id": "p1", "quantity": "2", "price": "10"}])

    assert rows == [{"id": "oi1"}]
    chain.insert.assert_called_with([{"order_id": "o1", "product_id": "p1", "quantity": 2, "price": 10.0}])


def test_insert_order_items_failure_returns_empty(monkeypatch):
    client, chain = _client_returning(None)
    chain.execute.side_effect = Exception("duplicate")
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)
    assert orders_repo.insert_order_items("o1", [{"product_id": "p1", "quantity": 1, "price": 1}]) == []


def test_get_order_by_payment_session(monkeypatch):
    client, chain = _client_returning([{"id": "o1", "payment_session_id": "cs_1"}])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    assert orders_repo.get_order_by_payment_session("cs_1")["id"] == "o1"
    chain.eq.assert_called_with("payment_session_id", "cs_1")


def test_fetch_all_orders_error_returns_empty(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", _raising)
    assert orders_repo.fetch_all_orders() == []


def test_decrement_stock_floors_at_zero(monkeypatch):
    client, chain = _client_returning([{"id": "p1", "stock": 1}])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)

    assert products_repo.decrement_stock("p1", 3) == 0
    chain.update.assert_called_with({"stock": 0})


def test_decrement_stock_unknown_product(monkeypatch):
    client, chain = _client_returning([])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)
    assert products_repo.decrement_stock("p1", 1) is None
    chain.update.assert_not_called()


def test_get_order_items_empty_and_error(monkeypatch):
    client, chain = _client_returning([])
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)
    assert orders_repo.get_order_items("o1") == []
    client.table.assert_called_with("order_items")
    chain.eq.assert_called_with("order_id", "o1")

    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", _raising)
    assert orders_repo.get_order_items("o1") is None


def test_get_product_missing_vs_error(monkeypatch):
    client, _ = _client_returning([])
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: client)
    assert products_repo.get_product("p1") is None

    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", _raising)
    with pytest.raises(Exception):
        products_repo.get_product("p1")
