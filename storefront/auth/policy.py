"""
Politique d'autorisation unique de la boutique.

Toutes les routes protégées et les contrôles de propriété passent par is_allowed():
le rôle vient du claim calculé à chaque requête (storefront.utils.security.get_current_user),
jamais d'un état global du processus.
"""
from typing import Any, Dict, FrozenSet, Optional

# module storefront.auth.policy
CART_USE = "cart:use"
ORDERS_PLACE = "orders:place"
ORDERS_READ_OWN = "orders:read_own"
ORDERS_MANAGE = "orders:manage"
PRODUCTS_MANAGE = "products:manage"
DISCOUNTS_MANAGE = "discounts:manage"

_CUSTOMER: FrozenSet[str] = frozenset({CART_USE, ORDERS_PLACE, ORDERS_READ_OWN})

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "user": _CUSTOMER,
    "admin": _CUSTOMER | {ORDERS_MANAGE, PRODUCTS_MANAGE, DISCOUNTS_MANAGE},
}

# Permissions limitées aux ressources de l'appelant (owner_id doit correspondre)
OWNER_SCOPED = frozenset({CART_USE, ORDERS_PLACE, ORDERS_READ_OWN})

def permissions_for(role: Optional[str]) -> FrozenSet[str]:
    return ROLE_PERMISSIONS.get(str(role or "").lower(), frozenset())

def is_allowed(user: Optional[Dict[str, Any]], permission: str, owner_id: Optional[str] = None) -> bool:
    """
    Évalue une permission pour un utilisateur (dict {id, role, ...}).
    - Sans utilisateur identifié: toujours refusé.
    - owner_id fourni sur une permission « propriétaire »: l'utilisateur doit être ce propriétaire,
      sauf s'il possède orders:manage (administration).
    """
    if not user or not user.get("id"):
        return False
    granted = permissions_for(user.get("role"))
    if permission not in granted:
        return False
    if owner_id is not None and permission in OWNER_SCOPED:
        if str(owner_id) != str(user.get("id")) and ORDERS_MANAGE not in granted:
            return False
    return True
