from typing import Optional, Dict, Any
from storefront.config import ADMIN_EMAILS
from .repository import get_user_from_access_token as _repo_get_user_from_token

def determine_role(email: Optional[str], app_metadata: Dict[str, Any] | None) -> str:
    """
    Rôle applicatif d'un utilisateur du fournisseur d'identité.
    - app_metadata.role (modifiable seulement côté serveur) fait foi
    - ADMIN_EMAILS permet d'amorcer un premier administrateur
    """
    role_lower = str((app_metadata or {}).get("role", "")).lower()
    if role_lower == "admin":
        return "admin"
    if email and email.lower() in ADMIN_EMAILS:
        return "admin"
    return "user"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, role, token}
    - Le rôle est recalculé à chaque requête (claim par requête, jamais mis en cache)
    """
    raw = _repo_get_user_from_token(access_token)
    email = raw.get("email")
    role = determine_role(email, raw.get("app_metadata"))
    return {"id": raw.get("id"), "email": email, "role": role, "token": access_token}
