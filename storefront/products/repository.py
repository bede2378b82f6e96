"""
Accès aux données du catalogue (tables 'products' et 'discounts').
"""
from typing import List, Dict, Any, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, description, images, price, stock, ratings, category, attributes"

# module storefront.products.repository
def list_products(category: Optional[str] = None) -> List[dict]:
    """
    Liste les produits (tri par date de création décroissante).
    - Filtre optionnel par catégorie.
    - Retourne [] en cas d’erreur.
    """
    try:
        query = supabase_client.get_supabase().table("products").select(PRODUCT_COLUMNS)
        if category:
            query = query.eq("category", category)
        res = query.order("created_at", desc=True).execute()
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed category=%s", category)
        return []

def get_product(product_id: str) -> Optional[dict]:
    """
    None si le produit n'existe pas.
    Une erreur d'accès est loggée puis relancée.
    """
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_COLUMNS)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        raise

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table("products").insert(data).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.create_product failed name=%s", data.get("name"))
        return None

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("products")
            .update(data)
            .eq("id", product_id)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.update_product failed id=%s", product_id)
        return None

def delete_product(product_id: str) -> bool:
    """
    Supprime un produit et ses dépendances, dans l’ordre:
    lignes de panier, lignes de commande, puis le produit.
    """
    try:
        client = supabase_client.get_service_supabase()
        client.table("cart_items").delete().eq("product_id", product_id).execute()
        client.table("order_items").delete().eq("product_id", product_id).execute()
        client.table("products").delete().eq("id", product_id).execute()
        return True
    except Exception:
        logger.exception("products.repository.delete_product failed id=%s", product_id)
        return False

def decrement_stock(product_id: str, quantity: int) -> Optional[int]:
    """
    Décrémente le stock (plancher 0) par lecture puis écriture.
    Retourne le nouveau stock, ou None si le produit est introuvable / en erreur.
    """
    try:
        client = supabase_client.get_service_supabase()
        res = client.table("products").select("id, stock").eq("id", product_id).limit(1).execute()
        rows = res.data or []
        if not rows:
            return None
        new_stock = max(int(rows[0].get("stock") or 0) - int(quantity), 0)
        client.table("products").update({"stock": new_stock}).eq("id", product_id).execute()
        return new_stock
    except Exception:
        logger.exception("products.repository.decrement_stock failed id=%s qty=%s", product_id, quantity)
        return None

# --- Remise globale (une seule ligne active) ---

def get_discount() -> Optional[dict]:
    try:
        res = supabase_client.get_supabase().table("discounts").select("id, discount").limit(1).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_discount failed")
        return None

def replace_discount(percentage: float) -> Optional[dict]:
    """Supprime toute remise existante puis crée la nouvelle (une seule active)."""
    try:
        client = supabase_client.get_service_supabase()
        client.table("discounts").delete().neq("id", "00000000-0000-0000-0000-000000000000").execute()
        res = client.table("discounts").insert({"discount": percentage}).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.replace_discount failed pct=%s", percentage)
        return None

def update_discount(discount_id: str, percentage: float) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("discounts")
            .update({"discount": percentage})
            .eq("id", discount_id)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.update_discount failed id=%s", discount_id)
        return None
