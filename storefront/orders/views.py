# module storefront.orders.views

"""Endpoints des commandes.
- /api/v1/orders: commandes de l'utilisateur courant et création « paiement à la livraison ».
- /api/v1/admin/orders: listing et mises à jour de statut (permission orders:manage).
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends, Body, HTTPException

from storefront.auth import policy
from storefront.results import as_response
from storefront.utils.security import require_customer, require_admin
from storefront.utils.rate_limit import optional_rate_limit
from storefront.orders import service as orders_service

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])
admin_router = APIRouter(prefix="/api/v1/admin/orders", tags=["Admin Orders API"])


@router.get("")
def my_orders(user: dict = Depends(require_customer)):
    return as_response(orders_service.list_user_orders(user.get("id")))


@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_order(data: Dict[str, Any] = Body(...), user: dict = Depends(require_customer)):
    """
    Corps: {"payment_method": "cash", "cart_id": "...", "user_id": "...", "address": {...}}.
    user_id, s'il est fourni, doit être celui de l'appelant.
    """
    owner_id = data.get("user_id") or user.get("id")
    if not policy.is_allowed(user, policy.ORDERS_PLACE, owner_id=owner_id):
        raise HTTPException(status_code=403, detail="Accès interdit")
    return as_response(orders_service.create_order(
        data.get("payment_method"),
        data.get("cart_id"),
        owner_id,
        data.get("address"),
    ))


@admin_router.get("")
def admin_list_orders(limit: int = 100, user: dict = Depends(require_admin)):
    return as_response(orders_service.list_all_orders(limit))


@admin_router.patch("/{order_id}/status")
def admin_update_status(order_id: str, data: Dict[str, Any] = Body(...), user: dict = Depends(require_admin)):
    """{"status": "PROCESSING" | "SHIPPING" | "SHIPPED"}"""
    return as_response(orders_service.update_order_status(order_id, data.get("status")))


@admin_router.patch("/{order_id}/payment-status")
def admin_update_payment_status(order_id: str, data: Dict[str, Any] = Body(...), user: dict = Depends(require_admin)):
    """{"payment_status": "PENDING" | "PAID" | "FAILED"}"""
    return as_response(orders_service.update_payment_status(order_id, data.get("payment_status") or data.get("status")))
