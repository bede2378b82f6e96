import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Depends, Body
from fastapi.responses import PlainTextResponse

from storefront.errors import SignatureVerificationFailed
from storefront.results import as_response
from storefront.utils.security import require_customer
from storefront.utils.rate_limit import optional_rate_limit
from storefront.payments import stripe_client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])
webhook_router = APIRouter(prefix="/api/webhook", tags=["Webhooks"])

# module storefront.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(data: Optional[Dict[str, Any]] = Body(None), user: dict = Depends(require_customer)):
    """
    Crée une session Checkout Stripe pour le panier de l'utilisateur authentifié.
    - Entrée JSON optionnelle: {"success_url": "...", "cancel_url": "..."}
      (par défaut: BASE_URL + CHECKOUT_SUCCESS_PATH / CHECKOUT_CANCEL_PATH)
    - Sécurité: require_customer + rate limit (10 req / 60s)
    - Réponse: {"success": true, "data": {"url", "id"}}; 400 si panier vide, 502 si Stripe échoue
    """
    # Importer le module pour bénéficier des monkeypatchs de tests
    from storefront.payments import service as payments_service
    default_success, default_cancel = payments_service.default_redirect_urls()
    body = data or {}
    result = payments_service.create_checkout_session(
        user.get("id"),
        body.get("success_url") or default_success,
        body.get("cancel_url") or default_cancel,
    )
    return as_response(result)

@router.get("/confirm")
def confirm_checkout(session_id: str, user: dict = Depends(require_customer)):
    """
    Alternative sans webhook: matérialise la commande depuis la page de succès.
    - 403 si la session appartient à un autre utilisateur
    - Idempotent avec le webhook (même clé payment_session_id)
    """
    from storefront.payments import service as payments_service
    return as_response(payments_service.confirm_checkout(session_id, user.get("id")))

@webhook_router.post("/stripe", include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe (Checkout): consomme checkout.session.completed pour créer la commande.
    - Signature invalide ou secret absent: 400 "Webhook Error" (aucune commande)
    - Échec de traitement: 500 "Checkout failed" (Stripe réessaiera)
    - Sinon: 200 "OK"
    """
    try:
        event = await stripe_client.parse_event(request)
    except SignatureVerificationFailed as e:
        logger.warning("payments.webhook rejected: %s", e.message)
        return PlainTextResponse("Webhook Error", status_code=400)

    try:
        from storefront.payments import service as payments_service
        order = payments_service.handle_event(event)
        if order:
            logger.info("payments.webhook processed event_id=%s order_id=%s", event.get("id"), order.get("id"))
    except Exception:
        logger.exception("Erreur stripe_webhook event_id=%s", (event or {}).get("id"))
        return PlainTextResponse("Checkout failed", status_code=500)
    return PlainTextResponse("OK", status_code=200)
