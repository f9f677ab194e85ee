"""
Réconciliation des webhooks Stripe: Unverified -> Verified -> Dispatched.

- La signature est vérifiée avant tout; en cas d'échec aucun handler ne s'exécute.
- Les types connus sont routés vers un handler dédié, les autres sont ignorés
  explicitement ({"success": True, "handled": False}), sans erreur.
- Les handlers émettent des signaux d'invalidation; un échec d'émission devient
  HandlerSideEffectError pour que Stripe relivre l'événement.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from storefront.infra.invalidation import InvalidationSink
from .errors import HandlerSideEffectError, MalformedEventError
from .stripe_client import PaymentProvider

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    PAYMENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"

    @classmethod
    def from_type(cls, event_type: Optional[str]) -> Optional["EventKind"]:
        try:
            return cls(event_type)
        except ValueError:
            return None


@dataclass
class WebhookEvent:
    type: str
    kind: Optional[EventKind]
    payload: Dict[str, Any] = field(default_factory=dict)
    delivery_id: Optional[str] = None

    @classmethod
    def from_dict(cls, event: Dict[str, Any]) -> "WebhookEvent":
        """
        Décode un événement Stripe {id, type, data: {object: {...}}}.
        - Soulève MalformedEventError si 'type' est absent ou si data.object n'est pas un objet.
        """
        event_type = event.get("type")
        if not event_type or not isinstance(event_type, str):
            raise MalformedEventError("Invalid webhook payload: missing event type")
        data = event.get("data") or {}
        payload = data.get("object") if isinstance(data, dict) else None
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise MalformedEventError("Invalid webhook payload: data.object must be an object")
        return cls(
            type=event_type,
            kind=EventKind.from_type(event_type),
            payload=payload,
            delivery_id=event.get("id"),
        )


Handler = Callable[[WebhookEvent], Dict[str, Any]]


def _ref(value: Any) -> Optional[str]:
    """Identifiant d'une référence Stripe (chaîne ou objet déplié)."""
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None


class WebhookDispatcher:
    def __init__(self, provider: PaymentProvider, webhook_secret: str, invalidator: InvalidationSink):
        self.provider = provider
        self.webhook_secret = webhook_secret
        self.invalidator = invalidator
        self.handlers: Dict[EventKind, Handler] = {
            EventKind.PAYMENT_SUCCEEDED: self.handle_payment_succeeded,
            EventKind.PAYMENT_FAILED: self.handle_payment_failed,
            EventKind.SUBSCRIPTION_CREATED: self.handle_subscription_created,
            EventKind.SUBSCRIPTION_UPDATED: self.handle_subscription_updated,
            EventKind.SUBSCRIPTION_DELETED: self.handle_subscription_deleted,
        }

    def handle(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Point d'entrée d'une livraison: vérifie puis route.
        - SignatureVerificationError: fatal, aucun handler exécuté.
        - MalformedEventError: corps signé mais inexploitable.
        """
        event = self.verify(payload, signature)
        return self.dispatch(event)

    def verify(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        raw = self.provider.verify_webhook_signature(payload, signature, self.webhook_secret)
        return WebhookEvent.from_dict(raw)

    def dispatch(self, event: WebhookEvent) -> Dict[str, Any]:
        handler = self.handlers.get(event.kind) if event.kind else None
        if handler is None:
            logger.info("payments.webhook unhandled type=%s delivery=%s", event.type, event.delivery_id)
            return {"success": True, "handled": False}
        result = handler(event)
        logger.info("payments.webhook handled type=%s delivery=%s", event.type, event.delivery_id)
        return result

    def _invalidate(self, event: WebhookEvent, path: str) -> None:
        try:
            self.invalidator.invalidate(path)
        except Exception as e:
            logger.exception("payments.webhook invalidation failed type=%s path=%s", event.type, path)
            raise HandlerSideEffectError(f"Failed to process {event.type}: {e}") from e

    # --- handlers ---
    def handle_payment_succeeded(self, event: WebhookEvent) -> Dict[str, Any]:
        intent = event.payload
        self._invalidate(event, "/orders")
        customer = _ref(intent.get("customer"))
        if customer:
            self._invalidate(event, f"/customers/{customer}")
        logger.info("Payment succeeded for intent: %s", intent.get("id"))
        return {"success": True, "payment_intent_id": intent.get("id")}

    def handle_payment_failed(self, event: WebhookEvent) -> Dict[str, Any]:
        intent = event.payload
        logger.info("Payment failed for intent: %s", intent.get("id"))
        return {"success": True, "payment_intent_id": intent.get("id")}

    def handle_subscription_created(self, event: WebhookEvent) -> Dict[str, Any]:
        subscription = event.payload
        self._invalidate(event, "/subscriptions")
        customer = _ref(subscription.get("customer"))
        if customer:
            self._invalidate(event, f"/customers/{customer}")
        logger.info("Subscription created: %s", subscription.get("id"))
        return {"success": True, "subscription_id": subscription.get("id")}

    def handle_subscription_updated(self, event: WebhookEvent) -> Dict[str, Any]:
        subscription = event.payload
        if subscription.get("id"):
            self._invalidate(event, f"/subscriptions/{subscription['id']}")
        self._invalidate(event, "/subscriptions")
        logger.info("Subscription updated: %s", subscription.get("id"))
        return {"success": True, "subscription_id": subscription.get("id")}

    def handle_subscription_deleted(self, event: WebhookEvent) -> Dict[str, Any]:
        subscription = event.payload
        self._invalidate(event, "/subscriptions")
        logger.info("Subscription deleted: %s", subscription.get("id"))
        return {"success": True, "subscription_id": subscription.get("id")}
