"""
Lecture des métadonnées Stripe (cart_id, user_id) d'une session Checkout.
"""
from typing import Any, Dict, Optional, Tuple

# module storefront.payments.metadata
def extract_metadata_from_session(session: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """
    Extrait (cart_id, user_id) depuis session["metadata"].
    Les valeurs vides sont renvoyées à None.
    """
    meta = (session or {}).get("metadata") or {} if isinstance(session, dict) else {}
    cart_id = meta.get("cart_id") or None
    user_id = meta.get("user_id") or None
    return cart_id, user_id

def extract_session_from_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Objet session porté par un event webhook (event.data.object)."""
    if not isinstance(event, dict):
        return {}
    return (event.get("data") or {}).get("object") or {}
