"""
Cas d'usage du panier: ajout (fusion additive), lecture, mise à jour et suppression de lignes.
Chaque opération renvoie un ActionResult; aucune erreur métier ne dépasse cette frontière.
"""
from typing import Any, Dict, List, Optional
import logging

from storefront.auth import policy
from storefront.errors import Unauthenticated, NotFound, InvalidInput, InsufficientStock
from storefront.results import ActionResult, handle_exception
from storefront.cart import repository
from storefront.products import repository as products_repository

logger = logging.getLogger(__name__)

def _require_user_id(user_id: Optional[str], message: str) -> str:
    if not user_id:
        raise Unauthenticated(message)
    return str(user_id)

def _validated_quantity(quantity: Any) -> int:
    # bool est un int en Python: refusé explicitement
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInput("La quantité doit être un entier")
    if quantity <= 0:
        raise InvalidInput("La quantité doit être positive")
    return quantity

def _check_stock(product: Dict[str, Any], quantity: int) -> None:
    if int(product.get("stock") or 0) < quantity:
        raise InsufficientStock("Stock disponible insuffisant")

def cart_lines(cart: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Aplatit cart_items + produit joint en lignes:
    {id, product_id, quantity, name, price, image, stock}.
    Ignore les lignes dont le produit a disparu.
    """
    lines: List[Dict[str, Any]] = []
    for item in (cart or {}).get("cart_items") or []:
        product = item.get("products") or {}
        if not product:
            continue
        images = product.get("images") or []
        lines.append({
            "id": item.get("id"),
            "product_id": item.get("product_id") or product.get("id"),
            "quantity": int(item.get("quantity") or 0),
            "name": product.get("name") or "",
            "price": float(product.get("price") or 0),
            "image": images[0] if images else None,
            "stock": int(product.get("stock") or 0),
        })
    return lines

def add_to_cart(user_id: Optional[str], product_id: str, quantity: Any) -> ActionResult:
    """
    Ajoute un produit au panier de l'utilisateur.
    - Valide quantity (entier > 0) et quantity <= stock du produit
    - Crée le panier à la première utilisation
    - Fusion additive si le produit est déjà présent
    - En cas d'échec métier, le panier n'est pas modifié
    """
    try:
        uid = _require_user_id(user_id, "Veuillez vous connecter pour ajouter des articles au panier")
        qty = _validated_quantity(quantity)

        product = products_repository.get_product(product_id)
        if not product:
            raise NotFound("Produit introuvable")
        _check_stock(product, qty)

        cart = repository.get_cart_by_user(uid)
        if not cart:
            cart = repository.create_cart(uid)
            if not cart:
                raise RuntimeError("création du panier impossible")
            logger.info("cart.service.add_to_cart created cart_id=%s user_id=%s", cart.get("id"), uid)

        existing = repository.find_cart_item(cart["id"], product_id)
        if existing:
            item = repository.update_cart_item_quantity(existing["id"], int(existing.get("quantity") or 0) + qty)
        else:
            item = repository.insert_cart_item(cart["id"], product_id, qty)
        if not item:
            raise RuntimeError("écriture de la ligne de panier impossible")

        return ActionResult.ok({
            "id": item.get("id"),
            "quantity": item.get("quantity"),
            "product": {"id": product.get("id"), "name": product.get("name"), "price": product.get("price")},
        })
    except Exception as e:
        return handle_exception("add_to_cart", e, "Impossible d'ajouter l'article au panier")

def get_cart(user_id: Optional[str]) -> ActionResult:
    try:
        uid = _require_user_id(user_id, "Veuillez vous connecter pour voir votre panier")
        cart = repository.get_user_cart_with_items(uid)
        lines = cart_lines(cart)
        return ActionResult.ok({
            "cart_id": (cart or {}).get("id"),
            "items": lines,
            "item_count": sum(line["quantity"] for line in lines),
            "total": round(sum(line["price"] * line["quantity"] for line in lines), 2),
        })
    except Exception as e:
        return handle_exception("get_cart", e, "Impossible de récupérer le panier")

def _owned_item(uid: str, item_id: str) -> Dict[str, Any]:
    item = repository.get_cart_item(item_id)
    owner_id = ((item or {}).get("carts") or {}).get("user_id")
    # Une ligne d'un autre panier est traitée comme introuvable
    if not owner_id or not policy.is_allowed({"id": uid, "role": "user"}, policy.CART_USE, owner_id=owner_id):
        raise NotFound("Article du panier introuvable")
    return item

def update_cart_item(user_id: Optional[str], item_id: str, quantity: Any) -> ActionResult:
    """Écrase la quantité d'une ligne (quantity >= 1 et <= stock)."""
    try:
        uid = _require_user_id(user_id, "Veuillez vous connecter pour modifier votre panier")
        qty = _validated_quantity(quantity)
        item = _owned_item(uid, item_id)

        product = products_repository.get_product(item["product_id"])
        if not product:
            raise NotFound("Produit introuvable")
        _check_stock(product, qty)

        updated = repository.update_cart_item_quantity(item_id, qty)
        if not updated:
            raise RuntimeError("mise à jour de la ligne de panier impossible")
        return ActionResult.ok({"id": updated.get("id"), "quantity": updated.get("quantity")})
    except Exception as e:
        return handle_exception("update_cart_item", e, "Impossible de mettre à jour le panier")

def remove_from_cart(user_id: Optional[str], item_id: str) -> ActionResult:
    try:
        uid = _require_user_id(user_id, "Veuillez vous connecter pour modifier votre panier")
        _owned_item(uid, item_id)
        if not repository.delete_cart_item(item_id):
            raise RuntimeError("suppression de la ligne de panier impossible")
        return ActionResult.ok({"id": item_id})
    except Exception as e:
        return handle_exception("remove_from_cart", e, "Impossible de retirer l'article du panier")
