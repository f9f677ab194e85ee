"""
Adaptateur Stripe: centralise les appels au fournisseur de paiement.

Le client est construit explicitement avec sa clé (pas de stripe.api_key global)
et injecté dans le builder de checkout et le dispatcher de webhooks.
"""
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import stripe

from .errors import MalformedEventError, SignatureVerificationError
from .models import CheckoutLineItem, CheckoutRequest, CheckoutSession

SESSION_EXPAND = ["line_items", "customer", "payment_intent", "subscription"]


class PaymentProvider(ABC):
    """Capacités attendues du fournisseur (Stripe en prod, faux fournisseur en tests)."""

    @abstractmethod
    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        ...

    @abstractmethod
    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
        ...


def to_stripe_line_item(line: CheckoutLineItem, currency: str) -> Dict[str, Any]:
    """
    Construit une ligne Stripe.
    - price_id présent: {"price": "<price_id>", "quantity": n} (montant géré par Stripe).
    - Sinon price_data avec unit_amount (centimes) et product_data; pas de 'recurring' => paiement unique.
    """
    if line.price_id:
        return {"price": line.price_id, "quantity": line.quantity}
    product_data: Dict[str, Any] = {"name": line.name}
    if line.description:
        product_data["description"] = line.description
    if line.images:
        product_data["images"] = list(line.images)
    if line.metadata:
        product_data["metadata"] = dict(line.metadata)
    return {
        "quantity": line.quantity,
        "price_data": {
            "currency": currency,
            "unit_amount": int(line.unit_amount or 0),
            "product_data": product_data,
        },
    }


class StripeProvider(PaymentProvider):
    def __init__(self, api_key: str, currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Crée une session Stripe Checkout hébergée.
        Retour: CheckoutSession(url, session_id). Les erreurs du SDK remontent telles quelles.
        """
        params: Dict[str, Any] = {
            "line_items": [to_stripe_line_item(li, self.currency) for li in request.line_items],
            "mode": request.mode,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": dict(request.metadata),
            "billing_address_collection": "required",
            "allow_promotion_codes": True,
        }
        if request.customer_id:
            params["customer"] = request.customer_id
        session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        return CheckoutSession(url=session.url, session_id=session.id)

    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key, expand=SESSION_EXPAND)
        return session.to_dict()

    def verify_webhook_signature(self, payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
        """
        Vérifie l'en-tête Stripe-Signature (HMAC SHA-256 + tolérance d'horodatage) puis décode l'événement.
        - Signature ou secret manquant / invalide: SignatureVerificationError.
        - Corps non JSON malgré une signature valide: MalformedEventError.
        """
        if not secret:
            raise SignatureVerificationError("Missing Stripe webhook secret")
        if not signature:
            raise SignatureVerificationError("Missing stripe signature")
        text = payload.decode("utf-8", errors="replace") if isinstance(payload, (bytes, bytearray)) else str(payload)
        try:
            stripe.WebhookSignature.verify_header(text, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureVerificationError(f"Webhook verification failed: {e}") from e
        try:
            event = json.loads(text)
        except ValueError as e:
            raise MalformedEventError(f"Invalid webhook payload: {e}") from e
        if not isinstance(event, dict):
            raise MalformedEventError("Invalid webhook payload: object expected")
        return event
