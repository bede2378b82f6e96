"""
Construction pure des line_items Stripe depuis les lignes du panier (pas de Stripe, pas de DB).
"""
from typing import List, Dict, Any
from storefront.config import CHECKOUT_CURRENCY

# module storefront.payments.line_items
def to_minor_units(price: Any) -> int:
    """Montant en plus petite unité monétaire (centimes): round(price * 100)."""
    try:
        return int(round(float(price or 0) * 100))
    except (TypeError, ValueError):
        return 0

def to_line_items(lines: List[Dict[str, Any]], currency: str = CHECKOUT_CURRENCY) -> List[Dict[str, Any]]:
    """
    Une ligne Stripe par ligne de panier.
    - product_data.name: nom du produit
    - product_data.images: première image, omise si absente
    - unit_amount: prix unitaire en centimes
    """
    line_items: List[Dict[str, Any]] = []
    for line in lines or []:
        product_data: Dict[str, Any] = {"name": line.get("name") or "Article"}
        if line.get("image"):
            product_data["images"] = [line["image"]]
        line_items.append({
            "quantity": int(line.get("quantity") or 0),
            "price_data": {
                "currency": currency,
                "unit_amount": to_minor_units(line.get("price")),
                "product_data": product_data,
            },
        })
    return line_items

def make_metadata(cart_id: str, user_id: str) -> Dict[str, str]:
    """
    Métadonnées rattachées à la session: permettent au webhook de retrouver le panier.
    Stripe n'accepte que des chaînes.
    """
    return {"cart_id": str(cart_id), "user_id": str(user_id)}
