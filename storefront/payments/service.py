"""
Cas d'usage 'payments': session Checkout depuis le panier, traitement des events webhook,
confirmation sans webhook. La matérialisation des commandes vit dans storefront.orders.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from storefront import config
from storefront.errors import Unauthenticated, EmptyCart, Forbidden, InvalidInput, MissingMetadata
from storefront.results import ActionResult, handle_exception
from storefront.cart import repository as cart_repo
from storefront.cart.service import cart_lines
from storefront.orders import service as orders_service
from . import line_items as payments_line_items
from . import stripe_client
from . import metadata as payments_metadata

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

def default_redirect_urls() -> Tuple[str, str]:
    """
    URLs de retour Stripe construites depuis BASE_URL.
    {CHECKOUT_SESSION_ID} est substitué par Stripe (utilisé par /payments/confirm).
    """
    success_url = f"{config.BASE_URL}{config.CHECKOUT_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{config.BASE_URL}{config.CHECKOUT_CANCEL_PATH}"
    return success_url, cancel_url

def create_checkout_session(user_id: Optional[str], success_url: str, cancel_url: str) -> ActionResult:
    """
    Prépare la session Stripe à partir du panier de l'utilisateur.
    - Panier absent ou vide: EmptyCart, aucun appel Stripe
    - metadata {cart_id, user_id} pour le webhook
    Retour data: {"url", "id"}
    """
    try:
        if not user_id:
            raise Unauthenticated("Veuillez vous connecter pour passer commande")
        cart = cart_repo.get_user_cart_with_items(user_id)
        lines = cart_lines(cart)
        if not cart or not lines:
            raise EmptyCart()

        session = stripe_client.create_session(
            line_items=payments_line_items.to_line_items(lines),
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=payments_line_items.make_metadata(cart["id"], user_id),
        )
        logger.info("payments.checkout session_id=%s cart_id=%s user_id=%s", session.get("id"), cart["id"], user_id)
        return ActionResult.ok({"url": session.get("url"), "id": session.get("id")})
    except Exception as e:
        return handle_exception("create_checkout_session", e, "Impossible de créer la session de paiement")

def handle_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Dispatch d'un event webhook déjà vérifié.
    - checkout.session.completed: matérialise la commande (idempotent)
    - autres types: ignorés (None)
    Les erreurs remontent à la vue (500, Stripe réessaiera).
    """
    event_type = (event or {}).get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.info("payments.webhook ignored type=%s", event_type)
        return None
    session = payments_metadata.extract_session_from_event(event)
    session_id = session.get("id")
    if not session_id:
        raise MissingMetadata("Identifiant de session manquant")
    return orders_service.materialize_order(session_id)

def confirm_checkout(session_id: str, current_user_id: Optional[str]) -> ActionResult:
    """
    Alternative sans webhook (page de succès): vérifie la propriété de la session
    et son paiement, puis appelle le même matérialiseur idempotent.
    Une session non payée (abandonnée, en cours) ne produit aucune commande.
    """
    try:
        if not current_user_id:
            raise Unauthenticated()
        session = stripe_client.get_session(session_id)
        _, meta_user_id = payments_metadata.extract_metadata_from_session(session)
        if meta_user_id != current_user_id:
            raise Forbidden("Session appartenant à un autre utilisateur")
        if session.get("payment_status") != "paid":
            raise InvalidInput("Paiement non finalisé")
        order = orders_service.materialize_order(session_id)
        return ActionResult.ok(order)
    except Exception as e:
        return handle_exception("confirm_checkout", e, "Impossible de confirmer le paiement")
