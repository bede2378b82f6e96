from typing import Any, Dict
from fastapi import APIRouter, Depends, Body

from storefront.results import as_response
from storefront.utils.security import require_customer
from storefront.utils.rate_limit import optional_rate_limit
from storefront.cart import service as cart_service

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

# module storefront.cart.views
@router.get("")
def get_cart(user: dict = Depends(require_customer)):
    """Panier de l'utilisateur courant: lignes, total et nombre d'articles."""
    return as_response(cart_service.get_cart(user.get("id")))


@router.post("/items", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def add_item(data: Dict[str, Any] = Body(...), user: dict = Depends(require_customer)):
    """
    Ajoute un produit: {"product_id": "<uuid>", "quantity": <int>}.
    La quantité est fusionnée si le produit est déjà dans le panier.
    """
    return as_response(cart_service.add_to_cart(user.get("id"), data.get("product_id"), data.get("quantity", 1)))


@router.patch("/items/{item_id}")
def update_item(item_id: str, data: Dict[str, Any] = Body(...), user: dict = Depends(require_customer)):
    return as_response(cart_service.update_cart_item(user.get("id"), item_id, data.get("quantity")))


@router.delete("/items/{item_id}")
def remove_item(item_id: str, user: dict = Depends(require_customer)):
    return as_response(cart_service.remove_from_cart(user.get("id"), item_id))
