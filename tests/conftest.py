import os
import pytest
from typing import Generator, Dict, Any, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

# Désactive l'init fastapi-limiter (évite toute connexion Redis pendant les tests)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from storefront.app import app as fastapi_app
from storefront.utils.security import get_current_user

FAKE_USER: Dict[str, Any] = {"id": "test-user", "email": "test@example.com", "role": "user", "token": "fake-token"}
FAKE_ADMIN: Dict[str, Any] = {"id": "admin-user-id", "email": "admin@example.com", "role": "admin", "token": "admin-token"}

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_current_user(app):
    app.dependency_overrides[get_current_user] = lambda: dict(FAKE_USER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_current_user, None)

@pytest.fixture
def admin_client(app, client):
    """Client API avec un administrateur authentifié."""
    app.dependency_overrides[get_current_user] = lambda: dict(FAKE_ADMIN)
    yield client
    app.dependency_overrides[get_current_user] = lambda: dict(FAKE_USER)

@pytest.fixture
def anonymous_client(app, client):
    """Client sans override: la résolution réelle du token s'applique (401 sans cookie ni Bearer)."""
    app.dependency_overrides.pop(get_current_user, None)
    yield client

# Aucun test ne doit joindre Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())


class InMemoryStore:
    """
    Double en mémoire des repositories cart / orders / products.
    fail: noms de fonctions à faire échouer (retour None / [] / False comme les vrais repositories).
    """

    def __init__(self):
        self.products: Dict[str, dict] = {}
        self.carts: Dict[str, dict] = {}
        self.cart_items: Dict[str, dict] = {}
        self.orders: Dict[str, dict] = {}
        self.order_items: Dict[str, dict] = {}
        self.fail: set = set()
        self._seq = 0

    def _next(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    # --- fixtures de données ---
    def add_product(self, name: str, price: float, stock: int, images: Optional[List[str]] = None) -> dict:
        pid = self._next("prod")
        self.products[pid] = {"id": pid, "name": name, "price": price, "stock": stock, "images": images or []}
        return self.products[pid]

    def put_in_cart(self, user_id: str, product_id: str, quantity: int) -> dict:
        cart = self.get_cart_by_user(user_id) or self.create_cart(user_id)
        return self.insert_cart_item(cart["id"], product_id, quantity)

    # --- products.repository ---
    def get_product(self, product_id):
        p = self.products.get(product_id)
        return dict(p) if p else None

    def decrement_stock(self, product_id, quantity):
        if "decrement_stock" in self.fail or product_id not in self.products:
            return None
        p = self.products[product_id]
        p["stock"] = max(int(p["stock"]) - int(quantity), 0)
        return p["stock"]

    # --- cart.repository ---
    def get_cart_by_user(self, user_id):
        for c in self.carts.values():
            if c["user_id"] == user_id:
                return dict(c)
        return None

    def create_cart(self, user_id):
        if "create_cart" in self.fail:
            return None
        cid = self._next("cart")
        self.carts[cid] = {"id": cid, "user_id": user_id}
        return dict(self.carts[cid])

    def _with_items(self, cart):
        if not cart:
            return None
        items = []
        for it in self.cart_items.values():
            if it["cart_id"] != cart["id"]:
                continue
            p = self.products.get(it["product_id"])
            items.append({
                "id": it["id"],
                "product_id": it["product_id"],
                "quantity": it["quantity"],
                "products": dict(p) if p else None,
            })
        return {"id": cart["id"], "user_id": cart["user_id"], "cart_items": items}

    def get_cart_with_items(self, cart_id):
        return self._with_items(self.carts.get(cart_id))

    def get_user_cart_with_items(self, user_id):
        return self._with_items(self.get_cart_by_user(user_id))

    def find_cart_item(self, cart_id, product_id):
        for it in self.cart_items.values():
            if it["cart_id"] == cart_id and it["product_id"] == product_id:
                return dict(it)
        return None

    def get_cart_item(self, item_id):
        it = self.cart_items.get(item_id)
        if not it:
            return None
        cart = self.carts.get(it["cart_id"]) or {}
        return {**it, "carts": {"user_id": cart.get("user_id")}}

    def insert_cart_item(self, cart_id, product_id, quantity):
        iid = self._next("item")
        self.cart_items[iid] = {"id": iid, "cart_id": cart_id, "product_id": product_id, "quantity": quantity}
        return dict(self.cart_items[iid])

    def update_cart_item_quantity(self, item_id, quantity):
        if item_id not in self.cart_items:
            return None
        self.cart_items[item_id]["quantity"] = quantity
        return dict(self.cart_items[item_id])

    def delete_cart_item(self, item_id):
        self.cart_items.pop(item_id, None)
        return True

    def delete_cart(self, cart_id):
        if "delete_cart" in self.fail:
            return False
        for iid in [i for i, it in self.cart_items.items() if it["cart_id"] == cart_id]:
            del self.cart_items[iid]
        self.carts.pop(cart_id, None)
        return True

    # --- orders.repository ---
    def get_order_by_payment_session(self, session_id):
        for o in self.orders.values():
            if o.get("payment_session_id") == session_id:
                return dict(o)
        return None

    def get_order(self, order_id):
        o = self.orders.get(order_id)
        return dict(o) if o else None

    def insert_order(self, payload):
        if "insert_order" in self.fail:
            return None
        sid = payload.get("payment_session_id")
        if sid and self.get_order_by_payment_session(sid):
            return None
        oid = self._next("order")
        self.orders[oid] = {"id": oid, **payload}
        return dict(self.orders[oid])

    def insert_order_items(self, order_id, items):
        if "insert_order_items" in self.fail:
            return []
        rows = []
        for it in items:
            iid = self._next("oi")
            self.order_items[iid] = {"id": iid, "order_id": order_id, **it}
            rows.append(dict(self.order_items[iid]))
        return rows

    def get_order_items(self, order_id):
        if "get_order_items" in self.fail:
            return None
        return [dict(it) for it in self.items_of(order_id)]

    def delete_order(self, order_id):
        if "delete_order" in self.fail:
            return False
        for iid in [i for i, it in self.order_items.items() if it["order_id"] == order_id]:
            del self.order_items[iid]
        self.orders.pop(order_id, None)
        return True

    def items_of(self, order_id):
        return [it for it in self.order_items.values() if it["order_id"] == order_id]

    def fetch_all_orders(self, limit=100):
        return [dict(o, order_items=self.items_of(o["id"])) for o in list(self.orders.values())[:limit]]

    def fetch_user_orders(self, user_id):
        return [dict(o, order_items=self.items_of(o["id"])) for o in self.orders.values() if o["user_id"] == user_id]

    def update_order(self, order_id, fields):
        if order_id not in self.orders:
            return None
        self.orders[order_id].update(fields)
        return dict(self.orders[order_id])

    def install(self, monkeypatch):
        import storefront.cart.repository as cart_repo
        import storefront.orders.repository as orders_repo
        import storefront.products.repository as products_repo

        for name in ("get_product", "decrement_stock"):
            monkeypatch.setattr(products_repo, name, getattr(self, name))
        for name in (
            "get_cart_by_user", "create_cart", "get_cart_with_items", "get_user_cart_with_items",
            "find_cart_item", "get_cart_item", "insert_cart_item", "update_cart_item_quantity",
            "delete_cart_item", "delete_cart",
        ):
            monkeypatch.setattr(cart_repo, name, getattr(self, name))
        for name in (
            "get_order_by_payment_session", "get_order", "get_order_items", "insert_order", "insert_order_items",
            "delete_order", "fetch_all_orders", "fetch_user_orders", "update_order",
        ):
            monkeypatch.setattr(orders_repo, name, getattr(self, name))
        return self


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    """Store en mémoire branché à la place des repositories Supabase."""
    return InMemoryStore().install(monkeypatch)


class FakeStripe:
    """Sessions Checkout simulées: create_session enregistre, get_session relit."""

    def __init__(self):
        self.sessions: Dict[str, dict] = {}
        self.created: List[dict] = []

    def create_session(self, *, line_items, success_url, cancel_url, metadata, mode="payment"):
        sid = f"cs_test_{len(self.sessions) + 1}"
        amount = sum(li["price_data"]["unit_amount"] * li["quantity"] for li in line_items)
        self.created.append({"line_items": line_items, "success_url": success_url, "cancel_url": cancel_url, "metadata": metadata})
        self.sessions[sid] = {
            "id": sid,
            "url": f"https://checkout.stripe.test/{sid}",
            "amount_total": amount,
            "payment_status": "unpaid",
            "metadata": dict(metadata),
        }
        return dict(self.sessions[sid])

    def complete(self, session_id: str, amount_total: Optional[int] = None) -> dict:
        session = self.sessions[session_id]
        session["payment_status"] = "paid"
        if amount_total is not None:
            session["amount_total"] = amount_total
        return {"id": f"evt_{session_id}", "type": "checkout.session.completed", "data": {"object": dict(session)}}

    def get_session(self, session_id):
        return dict(self.sessions[session_id])


@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    import storefront.payments.stripe_client as stripe_client

    fake = FakeStripe()
    monkeypatch.setattr(stripe_client, "create_session", fake.create_session)
    monkeypatch.setattr(stripe_client, "get_session", fake.get_session)
    return fake
