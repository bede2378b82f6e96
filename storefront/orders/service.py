"""Couche service de l'user story Commandes.
Rôles:
- Matérialiser une commande payée depuis une session Stripe (webhook ou page de succès).
- Créer une commande « paiement à la livraison » depuis le panier.
- Administration: listing, statut de livraison, statut de paiement.
Idempotence Stripe:
- orders.payment_session_id est unique: une session ne produit qu'une commande,
  quel que soit le nombre de livraisons du webhook.
"""
from typing import Any, Dict, List, Optional
import logging
from pydantic import ValidationError

from storefront.errors import (
    Unauthenticated,
    NotFound,
    InvalidInput,
    InsufficientStock,
    EmptyCart,
    EmptyOrMissingCart,
    MissingMetadata,
)
from storefront.results import ActionResult, handle_exception
from storefront.orders import repository
from storefront.orders.models import OrderStatus, PaymentStatus, PaymentMethod, ShippingAddress
from storefront.cart import repository as cart_repo
from storefront.cart.service import cart_lines
from storefront.products import repository as products_repository
from storefront.products.service import validation_message
from storefront.payments import stripe_client
from storefront.payments import metadata as payments_metadata

logger = logging.getLogger(__name__)

def _order_items_from_lines(lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Prix figé au moment de l'achat
    return [{"product_id": l["product_id"], "quantity": l["quantity"], "price": l["price"]} for l in lines]

def _decrement_stock(lines: List[Dict[str, Any]], order_id: str) -> None:
    """Best effort: un échec est loggé, la commande reste valide."""
    for line in lines:
        if products_repository.decrement_stock(line["product_id"], line["quantity"]) is None:
            logger.warning(
                "orders.service stock non décrémenté order_id=%s product_id=%s qty=%s",
                order_id, line["product_id"], line["quantity"],
            )

def _insert_items_or_compensate(order: Dict[str, Any], lines: List[Dict[str, Any]]) -> List[dict]:
    items = repository.insert_order_items(order["id"], _order_items_from_lines(lines))
    if len(items) != len(lines):
        # Compensation: la commande sans lignes est retirée, la relivraison repart de zéro
        if not repository.delete_order(order["id"]):
            logger.error("orders.service compensation impossible order_id=%s", order["id"])
            raise RuntimeError(
                f"insertion des lignes puis suppression de la commande impossibles order_id={order['id']}"
            )
        raise RuntimeError(f"insertion des lignes de commande impossible order_id={order['id']}")
    return items

def _resume_existing(existing: Dict[str, Any], cart_id: str, user_id: str, session_id: str) -> Dict[str, Any]:
    """
    Relivraison pour une session déjà matérialisée.
    Une commande restée sans lignes (échec entre la commande et ses lignes)
    est complétée depuis le panier encore présent avant suppression de celui-ci.
    """
    items = repository.get_order_items(existing["id"])
    if items is None:
        raise RuntimeError(f"lecture des lignes de commande impossible order_id={existing['id']}")
    if not items:
        cart = cart_repo.get_cart_with_items(cart_id)
        lines = cart_lines(cart)
        if not cart or not lines or str(cart.get("user_id")) != str(user_id):
            raise EmptyOrMissingCart("Commande sans lignes et panier introuvable")
        inserted = repository.insert_order_items(existing["id"], _order_items_from_lines(lines))
        if len(inserted) != len(lines):
            raise RuntimeError(f"insertion des lignes de commande impossible order_id={existing['id']}")
        _decrement_stock(lines, existing["id"])
        logger.warning(
            "orders.materialize completed empty order order_id=%s session_id=%s items=%s",
            existing["id"], session_id, len(lines),
        )
    else:
        logger.info("orders.materialize duplicate session_id=%s order_id=%s", session_id, existing.get("id"))

    if not cart_repo.delete_cart(cart_id):
        raise RuntimeError(f"suppression du panier impossible cart_id={cart_id}")
    return existing

def materialize_order(session_id: str) -> Dict[str, Any]:
    """
    Transforme une session Checkout complétée en commande.
    1) Session Stripe (ProviderError si indisponible)
    2) metadata {cart_id, user_id} (MissingMetadata sinon)
    3) Commande déjà créée pour cette session: complétée si elle est restée sans lignes,
       puis suppression du panier restant et retour de l'existante
    4) Panier du bon utilisateur avec au moins une ligne (EmptyOrMissingCart sinon)
    5) Commande: total = amount_total / 100 (montant Stripe), PROCESSING, PAID si payée
    6) Lignes de commande (compensation: suppression de la commande en cas d'échec)
    7) Décrément du stock (best effort)
    8) Suppression du panier en dernier; un échec remonte pour que Stripe réessaie
    Les erreurs remontent à l'appelant.
    """
    session = stripe_client.get_session(session_id)
    cart_id, user_id = payments_metadata.extract_metadata_from_session(session)
    if not cart_id or not user_id:
        raise MissingMetadata()

    existing = repository.get_order_by_payment_session(session_id)
    if existing:
        return _resume_existing(existing, cart_id, user_id, session_id)

    cart = cart_repo.get_cart_with_items(cart_id)
    lines = cart_lines(cart)
    if not cart or not lines or str(cart.get("user_id")) != str(user_id):
        raise EmptyOrMissingCart()

    order = repository.insert_order({
        "user_id": user_id,
        "total_price": float(session.get("amount_total") or 0) / 100,
        "status": OrderStatus.PROCESSING,
        "payment_method": PaymentMethod.STRIPE,
        "payment_status": PaymentStatus.PAID if session.get("payment_status") == "paid" else PaymentStatus.PENDING,
        "payment_session_id": session_id,
    })
    if not order:
        # Livraison concurrente: la contrainte unique a pu rejeter notre insertion
        concurrent = repository.get_order_by_payment_session(session_id)
        if concurrent:
            return concurrent
        raise RuntimeError(f"création de la commande impossible session_id={session_id}")

    _insert_items_or_compensate(order, lines)
    _decrement_stock(lines, order["id"])

    if not cart_repo.delete_cart(cart_id):
        raise RuntimeError(f"suppression du panier impossible cart_id={cart_id}")

    logger.info(
        "orders.materialize created order_id=%s session_id=%s user_id=%s items=%s",
        order["id"], session_id, user_id, len(lines),
    )
    return order

def _normalize_payment_method(payment_method: Any) -> str:
    method = str(payment_method or "").strip().upper()
    if method in ("CASH", PaymentMethod.CASH_ON_DELIVERY):
        return PaymentMethod.CASH_ON_DELIVERY
    if method == PaymentMethod.STRIPE:
        raise InvalidInput("Le paiement par carte passe par la session de paiement")
    raise InvalidInput("Moyen de paiement invalide")

def create_order(payment_method: Any, cart_id: str, user_id: Optional[str], address: Any) -> ActionResult:
    """
    Commande « paiement à la livraison » depuis le panier.
    - Adresse validée (ShippingAddress)
    - Stock revérifié pour chaque ligne
    - Total calculé localement (somme prix x quantité)
    """
    try:
        if not user_id:
            raise Unauthenticated("Veuillez vous connecter pour passer commande")
        method = _normalize_payment_method(payment_method)
        try:
            shipping = ShippingAddress.model_validate(address or {})
        except ValidationError as e:
            raise InvalidInput(validation_message(e))

        cart = cart_repo.get_cart_with_items(cart_id) if cart_id else None
        lines = cart_lines(cart)
        if not cart or not lines or str(cart.get("user_id")) != str(user_id):
            raise EmptyCart()
        for line in lines:
            if line["quantity"] > line["stock"]:
                raise InsufficientStock(f"Stock insuffisant pour {line['name']}")

        total = round(sum(l["price"] * l["quantity"] for l in lines), 2)
        order = repository.insert_order({
            "user_id": user_id,
            "total_price": total,
            "status": OrderStatus.PROCESSING,
            "payment_method": method,
            "payment_status": PaymentStatus.PENDING,
            "shipping_address": shipping.model_dump(),
        })
        if not order:
            raise RuntimeError("insert orders sans retour")

        _insert_items_or_compensate(order, lines)
        _decrement_stock(lines, order["id"])
        if not cart_repo.delete_cart(cart["id"]):
            logger.warning("orders.create_order panier non supprimé cart_id=%s order_id=%s", cart["id"], order["id"])

        logger.info("orders.create_order created order_id=%s user_id=%s total=%s", order["id"], user_id, total)
        return ActionResult.ok({
            "id": order["id"],
            "total_price": total,
            "status": OrderStatus.PROCESSING,
            "payment_method": method,
            "payment_status": PaymentStatus.PENDING,
        })
    except Exception as e:
        return handle_exception("create_order", e, "Impossible de créer la commande")

def list_all_orders(limit: int = 100) -> ActionResult:
    try:
        return ActionResult.ok(repository.fetch_all_orders(limit))
    except Exception as e:
        return handle_exception("list_all_orders", e, "Impossible de récupérer les commandes")

def list_user_orders(user_id: Optional[str]) -> ActionResult:
    try:
        if not user_id:
            raise Unauthenticated()
        return ActionResult.ok(repository.fetch_user_orders(user_id))
    except Exception as e:
        return handle_exception("list_user_orders", e, "Impossible de récupérer vos commandes")

def _existing_order(order_id: str) -> Dict[str, Any]:
    order = repository.get_order(order_id)
    if not order:
        raise NotFound("Commande introuvable")
    return order

def update_order_status(order_id: str, status: Any) -> ActionResult:
    """PROCESSING -> SHIPPING -> SHIPPED; pas de retour en arrière."""
    try:
        new_status = str(status or "").strip().upper()
        if new_status not in OrderStatus.FLOW:
            raise InvalidInput("Statut de commande invalide")
        order = _existing_order(order_id)
        current = order.get("status")
        current_rank = OrderStatus.FLOW.index(current) if current in OrderStatus.FLOW else 0
        if OrderStatus.FLOW.index(new_status) < current_rank:
            raise InvalidInput(f"Transition de statut interdite: {current} -> {new_status}")
        updated = repository.update_order(order_id, {"status": new_status})
        if not updated:
            raise RuntimeError("update orders sans retour")
        return ActionResult.ok({"id": order_id, "status": new_status})
    except Exception as e:
        return handle_exception("update_order_status", e, "Impossible de mettre à jour le statut de la commande")

def update_payment_status(order_id: str, status: Any) -> ActionResult:
    try:
        new_status = str(status or "").strip().upper()
        if new_status not in PaymentStatus.ALL:
            raise InvalidInput("Statut de paiement invalide")
        _existing_order(order_id)
        updated = repository.update_order(order_id, {"payment_status": new_status})
        if not updated:
            raise RuntimeError("update orders sans retour")
        return ActionResult.ok({"id": order_id, "payment_status": new_status})
    except Exception as e:
        return handle_exception("update_payment_status", e, "Impossible de mettre à jour le statut de paiement")
