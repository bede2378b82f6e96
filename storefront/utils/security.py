from fastapi import Request, HTTPException, Depends
from typing import Optional, Dict, Any
from storefront.auth import policy

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        # Délégué au service Auth (fournisseur d'identité)
        from storefront.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
        if not user.get("id"):
            raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
        return user
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")

def require_permission(permission: str):
    """
    Fabrique de dépendance: impose une permission de la politique (storefront.auth.policy).
    Utilisée uniformément par toutes les routes protégées.
    """
    def _dep(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not policy.is_allowed(user, permission):
            raise HTTPException(status_code=403, detail="Accès interdit")
        return user
    return _dep

require_customer = require_permission(policy.CART_USE)
require_admin = require_permission(policy.ORDERS_MANAGE)
require_product_admin = require_permission(policy.PRODUCTS_MANAGE)
require_discount_admin = require_permission(policy.DISCOUNTS_MANAGE)
