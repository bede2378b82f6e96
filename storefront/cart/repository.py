"""
Accès aux données du panier (tables 'carts' et 'cart_items').
Écritures via le client service-role: la propriété du panier est contrôlée par la couche service.
"""
from typing import Dict, Any, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

CART_WITH_ITEMS = "id, user_id, cart_items(id, product_id, quantity, products(id, name, price, images, stock))"

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

# module storefront.cart.repository
def get_cart_by_user(user_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .select("id, user_id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.get_cart_by_user failed user_id=%s", user_id)
        return None

def create_cart(user_id: str) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table("carts").insert({"user_id": user_id}).execute()
        return _first(res)
    except Exception:
        logger.exception("cart.repository.create_cart failed user_id=%s", user_id)
        return None

def get_cart_with_items(cart_id: str) -> Optional[dict]:
    """
    Panier + lignes + produit joint (nom, prix, images, stock).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .select(CART_WITH_ITEMS)
            .eq("id", cart_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.get_cart_with_items failed cart_id=%s", cart_id)
        return None

def get_user_cart_with_items(user_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .select(CART_WITH_ITEMS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.get_user_cart_with_items failed user_id=%s", user_id)
        return None

def find_cart_item(cart_id: str, product_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .select("id, cart_id, product_id, quantity")
            .eq("cart_id", cart_id)
            .eq("product_id", product_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.find_cart_item failed cart_id=%s product_id=%s", cart_id, product_id)
        return None

def get_cart_item(item_id: str) -> Optional[dict]:
    """Ligne de panier avec le propriétaire du panier (carts.user_id) pour le contrôle d'accès."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .select("id, cart_id, product_id, quantity, carts(user_id)")
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.get_cart_item failed id=%s", item_id)
        return None

def insert_cart_item(cart_id: str, product_id: str, quantity: int) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .insert({"cart_id": cart_id, "product_id": product_id, "quantity": quantity})
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.insert_cart_item failed cart_id=%s product_id=%s", cart_id, product_id)
        return None

def update_cart_item_quantity(item_id: str, quantity: int) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .update({"quantity": quantity})
            .eq("id", item_id)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("cart.repository.update_cart_item_quantity failed id=%s", item_id)
        return None

def delete_cart_item(item_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table("cart_items").delete().eq("id", item_id).execute()
        return True
    except Exception:
        logger.exception("cart.repository.delete_cart_item failed id=%s", item_id)
        return False

def delete_cart(cart_id: str) -> bool:
    """Supprime le panier et ses lignes (supprimer un panier absent n'est pas une erreur)."""
    try:
        client = supabase_client.get_service_supabase()
        client.table("cart_items").delete().eq("cart_id", cart_id).execute()
        client.table("carts").delete().eq("id", cart_id).execute()
        return True
    except Exception:
        logger.exception("cart.repository.delete_cart failed cart_id=%s", cart_id)
        return False
