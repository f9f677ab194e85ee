"""
Racine de composition: construit les collaborateurs une seule fois et les attache à app.state.
- provider: PaymentProvider (StripeProvider par défaut, substituable en tests)
- checkout_builder: CheckoutSessionBuilder
- webhook_dispatcher: WebhookDispatcher
- cart_storage: CartStorage (Redis si CART_REDIS_URL, sinon mémoire du process)
Les vues récupèrent ces objets via les dépendances get_* ci-dessous.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request

from storefront import config
from storefront.cart.storage import CartStorage, MemoryStorage, RedisStorage
from storefront.infra.invalidation import InvalidationSink, RecordingInvalidationSink, RedisInvalidationSink
from storefront.payments.checkout import CheckoutSessionBuilder
from storefront.payments.stripe_client import PaymentProvider, StripeProvider
from storefront.payments.webhooks import WebhookDispatcher

logger = logging.getLogger(__name__)


@dataclass
class Services:
    provider: PaymentProvider
    checkout_builder: CheckoutSessionBuilder
    webhook_dispatcher: WebhookDispatcher
    cart_storage: CartStorage
    invalidator: InvalidationSink


def build_services(
    provider: Optional[PaymentProvider] = None,
    invalidator: Optional[InvalidationSink] = None,
    cart_storage: Optional[CartStorage] = None,
    webhook_secret: Optional[str] = None,
) -> Services:
    if provider is None:
        if not config.STRIPE_SECRET_KEY:
            logger.warning("STRIPE_SECRET_KEY manquant: les appels Stripe échoueront")
        provider = StripeProvider(api_key=config.STRIPE_SECRET_KEY, currency=config.CHECKOUT_CURRENCY)

    if invalidator is None:
        if config.INVALIDATION_REDIS_URL:
            invalidator = RedisInvalidationSink.from_url(config.INVALIDATION_REDIS_URL, config.INVALIDATION_CHANNEL)
        else:
            invalidator = RecordingInvalidationSink()

    if cart_storage is None:
        if config.CART_REDIS_URL:
            cart_storage = RedisStorage.from_url(config.CART_REDIS_URL, ttl_seconds=config.CART_TTL_SECONDS)
        else:
            cart_storage = MemoryStorage()

    builder = CheckoutSessionBuilder(
        provider,
        success_url=f"{config.APP_URL}{config.CHECKOUT_SUCCESS_PATH}",
        cancel_url=f"{config.APP_URL}{config.CHECKOUT_CANCEL_PATH}",
    )
    secret = config.STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
    dispatcher = WebhookDispatcher(provider, secret, invalidator)
    return Services(
        provider=provider,
        checkout_builder=builder,
        webhook_dispatcher=dispatcher,
        cart_storage=cart_storage,
        invalidator=invalidator,
    )


def attach_services(app: FastAPI, services: Services) -> None:
    app.state.services = services


def _services(request: Request) -> Services:
    return request.app.state.services


def get_checkout_builder(request: Request) -> CheckoutSessionBuilder:
    return _services(request).checkout_builder


def get_webhook_dispatcher(request: Request) -> WebhookDispatcher:
    return _services(request).webhook_dispatcher


def get_cart_storage(request: Request) -> CartStorage:
    return _services(request).cart_storage
