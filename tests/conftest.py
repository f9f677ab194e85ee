import hashlib
import hmac
import json
import time
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.cart.storage import MemoryStorage
from storefront.infra.invalidation import RecordingInvalidationSink
from storefront.payments.models import CheckoutRequest, CheckoutSession
from storefront.payments.stripe_client import StripeProvider

WEBHOOK_SECRET = "whsec_test_secret"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeStripeProvider(StripeProvider):
    """
    Fournisseur de test: pas d'appel réseau pour les sessions,
    vérification de signature réelle (HMAC Stripe) héritée de StripeProvider.
    """

    def __init__(self) -> None:
        super().__init__(api_key="sk_test_fake", currency="usd")
        self.requests: List[CheckoutRequest] = []
        self.verify_calls = 0
        self.fail_with: Optional[Exception] = None
        self.sessions: Dict[str, Dict[str, Any]] = {}

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        self.requests.append(request)
        if self.fail_with:
            raise self.fail_with
        session_id = f"cs_test_{len(self.requests)}"
        self.sessions[session_id] = {"id": session_id, "mode": request.mode, "payment_status": "unpaid"}
        return CheckoutSession(url=f"https://example.test/checkout/{session_id}", session_id=session_id)

    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        return self.sessions[session_id]

    def verify_webhook_signature(self, payload, signature, secret):
        self.verify_calls += 1
        return super().verify_webhook_signature(payload, signature, secret)


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature valide pour un corps donné (t=<ts>,v1=<hmac>)."""
    ts = int(timestamp if timestamp is not None else time.time())
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def make_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> bytes:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode("utf-8")


@pytest.fixture(autouse=True)
def _disable_rate_limiter(monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)


@pytest.fixture()
def provider() -> FakeStripeProvider:
    return FakeStripeProvider()


@pytest.fixture()
def invalidator() -> RecordingInvalidationSink:
    return RecordingInvalidationSink()


@pytest.fixture()
def cart_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def app(provider, invalidator, cart_storage):
    return create_app(
        provider=provider,
        invalidator=invalidator,
        cart_storage=cart_storage,
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
