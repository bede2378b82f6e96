"""
Registre central des routers (API v1, admin, webhook, health).
- API v1: products, cart, payments, orders
- Admin: products/discount, orders
- Webhook: /api/webhook/stripe
- Health: health_router
"""
from fastapi import FastAPI
from storefront.products import views as products_views
from storefront.cart import views as cart_views
from storefront.payments import views as payments_views
from storefront.orders import views as orders_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(products_views.router)
    app.include_router(cart_views.router)
    app.include_router(payments_views.router)
    app.include_router(orders_views.router)
    # Admin
    app.include_router(products_views.admin_router)
    app.include_router(orders_views.admin_router)
    # Webhooks fournisseurs
    app.include_router(payments_views.webhook_router)
    # Health & monitoring
    app.include_router(health_router)
