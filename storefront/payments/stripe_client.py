"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import logging
import stripe
from typing import Any, Dict, List
from fastapi import Request

from storefront import config
from storefront.errors import ProviderError, SignatureVerificationFailed

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if config.STRIPE_SECRET_KEY:
        stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def as_dict(obj: Any) -> Dict[str, Any]:
    """Objet Stripe (StripeObject) -> dict python, imbrications comprises."""
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict_recursive", None) or getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
    mode: str = "payment",
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout.
    - Moyens de paiement et pays de livraison: configuration (CHECKOUT_*)
    - Toute erreur Stripe devient ProviderError
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(
            line_items=line_items,
            mode=mode,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            payment_method_types=list(config.CHECKOUT_PAYMENT_METHOD_TYPES),
            shipping_address_collection={"allowed_countries": list(config.CHECKOUT_SHIPPING_COUNTRIES)},
        )
    except Exception as e:
        logger.exception("payments.stripe_client.create_session failed")
        raise ProviderError("Impossible de créer la session de paiement") from e
    return as_dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "payment_status", "amount_total", "metadata".
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except Exception as e:
        logger.exception("payments.stripe_client.get_session failed session_id=%s", session_id)
        raise ProviderError("Impossible de récupérer la session de paiement") from e
    return as_dict(session)

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    - Sans secret configuré, tout événement est refusé
    Retour: l'event (dict) si la signature est valide, sinon SignatureVerificationFailed.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    secret = config.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("payments.stripe_client.parse_event STRIPE_WEBHOOK_SECRET manquant")
        raise SignatureVerificationFailed("Secret de webhook non configuré")
    if not sig_header:
        raise SignatureVerificationFailed("En-tête Stripe-Signature manquant")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, secret)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning("payments.stripe_client.parse_event signature invalide: %s", e)
        raise SignatureVerificationFailed() from e
    return as_dict(event)
