"""
Registre central des routers.
- Panier (session navigateur), checkout, webhooks Stripe, health.
"""
from fastapi import FastAPI

from storefront.cart import views as cart_views
from storefront.payments import views as payments_views
from storefront.health.router import router as health_router


def register_routers(app: FastAPI) -> None:
    app.include_router(cart_views.router)
    app.include_router(payments_views.router)
    app.include_router(payments_views.webhook_router)
    app.include_router(health_router)
