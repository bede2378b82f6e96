"""
Cas d'usage du catalogue: consultation publique (avec remise active) et administration.
"""
from typing import Any, Dict, List, Optional
from pydantic import ValidationError

from storefront.errors import InvalidInput, NotFound
from storefront.results import ActionResult, handle_exception
from storefront.products import repository
from storefront.products.models import ProductInput, DiscountInput

def validation_message(exc: ValidationError) -> str:
    """Premier message pydantic, préfixé du champ concerné."""
    errors = exc.errors()
    if not errors:
        return "Données invalides"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()))
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))

def discounted_price(price: Any, percentage: Optional[float]) -> Optional[float]:
    """Prix remisé si une remise valide (0 < pct <= 100) est active, sinon None."""
    pct = float(percentage or 0)
    if 0 < pct <= 100:
        return round(float(price or 0) * (1 - pct / 100), 2)
    return None

def _normalize_attributes(raw: Any) -> List[Dict[str, str]]:
    if not isinstance(raw, list):
        return []
    attrs = []
    for a in raw:
        if isinstance(a, dict) and a.get("key"):
            attrs.append({"key": str(a["key"]), "value": str(a.get("value", ""))})
    return attrs

def _present(product: Dict[str, Any], percentage: Optional[float]) -> Dict[str, Any]:
    out = dict(product)
    out["attributes"] = _normalize_attributes(product.get("attributes"))
    out["images"] = list(product.get("images") or [])
    out["discounted_price"] = discounted_price(product.get("price"), percentage)
    return out

def _active_percentage() -> Optional[float]:
    discount = repository.get_discount()
    return (discount or {}).get("discount")

def list_products(category: Optional[str] = None) -> ActionResult:
    try:
        pct = _active_percentage()
        return ActionResult.ok([_present(p, pct) for p in repository.list_products(category)])
    except Exception as e:
        return handle_exception("list_products", e, "Impossible de récupérer les produits")

def get_product(product_id: str) -> ActionResult:
    try:
        product = repository.get_product(product_id)
        if not product:
            raise NotFound("Produit introuvable")
        return ActionResult.ok(_present(product, _active_percentage()))
    except Exception as e:
        return handle_exception("get_product", e, "Impossible de récupérer le produit")

def _validated_product(data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return ProductInput.model_validate(data).model_dump()
    except ValidationError as e:
        raise InvalidInput(validation_message(e))

def _summary(product: Dict[str, Any]) -> Dict[str, Any]:
    return {k: product.get(k) for k in ("id", "name", "price", "stock")}

def add_product(data: Dict[str, Any]) -> ActionResult:
    try:
        created = repository.create_product(_validated_product(data))
        if not created:
            raise RuntimeError("insert products sans retour")
        return ActionResult.ok(_summary(created))
    except Exception as e:
        return handle_exception("add_product", e, "Échec de l'ajout du produit, veuillez réessayer")

def update_product(product_id: str, data: Dict[str, Any]) -> ActionResult:
    try:
        payload = _validated_product(data)
        if not repository.get_product(product_id):
            raise NotFound("Produit introuvable")
        updated = repository.update_product(product_id, payload)
        if not updated:
            raise RuntimeError("update products sans retour")
        return ActionResult.ok(_summary(updated))
    except Exception as e:
        return handle_exception("update_product", e, "Échec de la mise à jour du produit, veuillez réessayer")

def delete_product(product_id: str) -> ActionResult:
    try:
        if not repository.get_product(product_id):
            raise NotFound("Produit introuvable")
        if not repository.delete_product(product_id):
            raise RuntimeError("delete products en échec")
        return ActionResult.ok()
    except Exception as e:
        return handle_exception("delete_product", e, "Échec de la suppression du produit, veuillez réessayer")

# --- Remise ---

def _validated_percentage(percentage: Any) -> float:
    try:
        return DiscountInput(discount_percentage=percentage).discount_percentage
    except ValidationError as e:
        raise InvalidInput(validation_message(e))

def set_discount(percentage: Any) -> ActionResult:
    try:
        created = repository.replace_discount(_validated_percentage(percentage))
        if not created:
            raise RuntimeError("insert discounts sans retour")
        return ActionResult.ok(created)
    except Exception as e:
        return handle_exception("set_discount", e, "Erreur lors de l'ajout de la remise")

def update_discount(discount_id: str, percentage: Any) -> ActionResult:
    try:
        updated = repository.update_discount(discount_id, _validated_percentage(percentage))
        if not updated:
            raise NotFound("Remise introuvable")
        return ActionResult.ok(updated)
    except Exception as e:
        return handle_exception("update_discount", e, "Erreur lors de la mise à jour de la remise")

def get_discount() -> ActionResult:
    return ActionResult.ok(repository.get_discount())
