# module storefront.products.views

"""Endpoints du catalogue.
- /api/v1/products: consultation publique (prix remisé inclus si une remise est active).
- /api/v1/admin/products: création, mise à jour, suppression (permission products:manage).
- /api/v1/admin/discount: remise globale unique (permission discounts:manage).
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Body

from storefront.results import as_response
from storefront.utils.security import require_product_admin, require_discount_admin
from storefront.products import service as products_service

router = APIRouter(prefix="/api/v1/products", tags=["Products API"])
admin_router = APIRouter(prefix="/api/v1/admin", tags=["Admin Products API"])


@router.get("")
def list_products(category: Optional[str] = None):
    return as_response(products_service.list_products(category))


@router.get("/{product_id}")
def get_product(product_id: str):
    return as_response(products_service.get_product(product_id))


@admin_router.post("/products")
def admin_add_product(data: Dict[str, Any] = Body(...), user: dict = Depends(require_product_admin)):
    """Crée un produit. Le corps est validé par ProductInput côté service (message renvoyé au formulaire)."""
    return as_response(products_service.add_product(data))


@admin_router.put("/products/{product_id}")
def admin_update_product(product_id: str, data: Dict[str, Any] = Body(...), user: dict = Depends(require_product_admin)):
    return as_response(products_service.update_product(product_id, data))


@admin_router.delete("/products/{product_id}")
def admin_delete_product(product_id: str, user: dict = Depends(require_product_admin)):
    return as_response(products_service.delete_product(product_id))


@admin_router.get("/discount")
def admin_get_discount(user: dict = Depends(require_discount_admin)):
    return as_response(products_service.get_discount())


@admin_router.post("/discount")
def admin_set_discount(data: Dict[str, Any] = Body(...), user: dict = Depends(require_discount_admin)):
    """Remplace la remise active: {"discount_percentage": <0..100>}."""
    return as_response(products_service.set_discount(data.get("discount_percentage")))


@admin_router.put("/discount/{discount_id}")
def admin_update_discount(discount_id: str, data: Dict[str, Any] = Body(...), user: dict = Depends(require_discount_admin)):
    return as_response(products_service.update_discount(discount_id, data.get("discount_percentage")))
