"""
Factory d'application pour les entrypoints (storefront.asgi) et les tests.
Les collaborateurs (fournisseur de paiement, stockage panier, invalidation) sont injectables.
"""
from typing import Optional

from fastapi import FastAPI

from storefront.cart.storage import CartStorage
from storefront.infra.invalidation import InvalidationSink
from storefront.payments.stripe_client import PaymentProvider
from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares
from .routers import register_routers
from .services import attach_services, build_services


def create_app(
    provider: Optional[PaymentProvider] = None,
    invalidator: Optional[InvalidationSink] = None,
    cart_storage: Optional[CartStorage] = None,
    webhook_secret: Optional[str] = None,
) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - les collaborateurs (app.state.services)
      - middlewares de base, gestionnaires d'exceptions
      - tous les routers (panier, checkout, webhooks, health)
    """
    app = FastAPI(title="Storefront", lifespan=lifespan)
    attach_services(
        app,
        build_services(
            provider=provider,
            invalidator=invalidator,
            cart_storage=cart_storage,
            webhook_secret=webhook_secret,
        ),
    )
    register_basic_middlewares(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
