"""
Accès aux données des commandes (tables 'orders' et 'order_items').
Toutes les écritures passent par le client service-role.
"""
from typing import List, Dict, Any, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

ORDER_WITH_ITEMS = (
    "id, user_id, total_price, status, payment_method, payment_status, payment_session_id, "
    "shipping_address, created_at, order_items(id, product_id, quantity, price, products(name))"
)

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

# module storefront.orders.repository
def get_order_by_payment_session(session_id: str) -> Optional[dict]:
    """Clé d'idempotence du webhook: une seule commande par session Stripe."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, user_id, total_price, status, payment_status, payment_session_id")
            .eq("payment_session_id", session_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.get_order_by_payment_session failed session_id=%s", session_id)
        return None

def get_order_items(order_id: str) -> Optional[List[dict]]:
    """
    Lignes déjà enregistrées pour une commande.
    None en cas d'erreur, à distinguer d'une commande sans lignes ([]).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("order_items")
            .select("id, product_id, quantity, price")
            .eq("order_id", order_id)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.get_order_items failed order_id=%s", order_id)
        return None

def get_order(order_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("id, user_id, total_price, status, payment_method, payment_status")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def insert_order(payload: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table("orders").insert(payload).execute()
        return _first(res)
    except Exception:
        logger.exception("orders.repository.insert_order failed user_id=%s", payload.get("user_id"))
        return None

def insert_order_items(order_id: str, items: List[Dict[str, Any]]) -> List[dict]:
    """
    Insère les lignes de commande en un seul appel.
    Retourne [] en cas d'échec (l'appelant compense).
    """
    rows = [
        {
            "order_id": order_id,
            "product_id": it["product_id"],
            "quantity": int(it["quantity"]),
            "price": float(it["price"]),
        }
        for it in items
    ]
    try:
        res = supabase_client.get_service_supabase().table("order_items").insert(rows).execute()
        return res.data or []
    except Exception:
        logger.exception("orders.repository.insert_order_items failed order_id=%s", order_id)
        return []

def delete_order(order_id: str) -> bool:
    try:
        client = supabase_client.get_service_supabase()
        client.table("order_items").delete().eq("order_id", order_id).execute()
        client.table("orders").delete().eq("id", order_id).execute()
        return True
    except Exception:
        logger.exception("orders.repository.delete_order failed id=%s", order_id)
        return False

def fetch_all_orders(limit: int = 100) -> List[dict]:
    """
    Commandes pour l'admin, avec lignes et nom des produits.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(ORDER_WITH_ITEMS)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_all_orders failed")
        return []

def fetch_user_orders(user_id: str) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(ORDER_WITH_ITEMS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_user_orders failed user_id=%s", user_id)
        return []

def update_order(order_id: str, fields: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update(fields)
            .eq("id", order_id)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.update_order failed id=%s", order_id)
        return None
