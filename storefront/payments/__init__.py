"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul des frais, client Stripe, construction du checkout et dispatcher de webhooks.
"""

from .errors import (
    CommerceError,
    InvalidAmount,
    EmptyCartError,
    MissingPriceError,
    MissingProductError,
    SessionCreationError,
    SessionLookupError,
    SignatureVerificationError,
    MalformedEventError,
    HandlerSideEffectError,
)
from .fees import FEE_PERCENTAGE, FEE_LINE_NAME, FeeQuote, compute_fee, compute_total, quote, format_fee_text
from .models import CheckoutLineItem, CheckoutRequest, CheckoutSession
from .stripe_client import PaymentProvider, StripeProvider
from .checkout import CheckoutSessionBuilder
from .webhooks import EventKind, WebhookEvent, WebhookDispatcher

__all__ = [
    # erreurs
    "CommerceError",
    "InvalidAmount",
    "EmptyCartError",
    "MissingPriceError",
    "MissingProductError",
    "SessionCreationError",
    "SessionLookupError",
    "SignatureVerificationError",
    "MalformedEventError",
    "HandlerSideEffectError",
    # frais
    "FEE_PERCENTAGE",
    "FEE_LINE_NAME",
    "FeeQuote",
    "compute_fee",
    "compute_total",
    "quote",
    "format_fee_text",
    # checkout
    "CheckoutLineItem",
    "CheckoutRequest",
    "CheckoutSession",
    "CheckoutSessionBuilder",
    # stripe
    "PaymentProvider",
    "StripeProvider",
    # webhooks
    "EventKind",
    "WebhookEvent",
    "WebhookDispatcher",
]
