from typing import Optional, Any, Dict
import logging
from fastapi.responses import JSONResponse
from storefront.errors import StorefrontError, STATUS_BY_CODE

logger = logging.getLogger(__name__)

class ActionResult:
    """
    Résultat structuré d'une opération appelée par l'UI (succès + message).
    Les erreurs de validation / introuvable ne dépassent jamais la frontière de l'opération.
    """
    def __init__(
        self,
        success: bool,
        data: Any = None,
        error: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.success = success
        self.data = data
        self.error = error
        self.code = code

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(True, data=data)

    @classmethod
    def failure(cls, exc: StorefrontError) -> "ActionResult":
        return cls(False, error=exc.message, code=exc.code)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return STATUS_BY_CODE.get(self.code or "", 500)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.success:
            if self.data is not None:
                body["data"] = self.data
        else:
            body["error"] = self.error
            if self.code:
                body["code"] = self.code
        return body

def handle_exception(action: str, e: Exception, fallback_error: str) -> ActionResult:
    """
    Convertit une exception en ActionResult:
    - StorefrontError: message et code métier conservés
    - autre: loggée avec la stack, message générique pour l'utilisateur
    """
    if isinstance(e, StorefrontError):
        return ActionResult.failure(e)
    logger.exception(f"Erreur {action}")
    return ActionResult(False, error=fallback_error, code="internal_error")

def as_response(result: ActionResult) -> JSONResponse:
    """Sérialise un ActionResult pour les vues (statut HTTP dérivé du code d'erreur)."""
    return JSONResponse(result.to_dict(), status_code=result.status_code)
