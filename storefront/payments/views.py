import logging
from typing import Optional, Tuple, Type

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from storefront.app_setup.exceptions import error_response
from storefront.app_setup.services import get_checkout_builder, get_webhook_dispatcher
from storefront.utils.rate_limit import optional_rate_limit
from .checkout import CheckoutSessionBuilder
from .errors import CommerceError, HandlerSideEffectError, WebhookError
from .models import CartCheckoutIn, SubscriptionCheckoutIn
from .webhooks import WebhookDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])
webhook_router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])


def _invalid_payload(e: ValidationError) -> JSONResponse:
    first = (e.errors() or [{}])[0]
    where = ".".join(str(p) for p in first.get("loc", ()))
    return JSONResponse(status_code=400, content={"error": f"Invalid payload: {where} {first.get('msg', '')}".strip()})


async def _parse_body(request: Request, model: Type[BaseModel]) -> Tuple[Optional[BaseModel], Optional[JSONResponse]]:
    """Valide le corps JSON contre le schéma; retourne (payload, None) ou (None, réponse 400)."""
    try:
        body = await request.json()
    except ValueError:
        return None, JSONResponse(status_code=400, content={"error": "Invalid payload: body is not valid JSON"})
    try:
        return model.model_validate(body), None
    except ValidationError as e:
        return None, _invalid_payload(e)


@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_cart_checkout(request: Request, builder: CheckoutSessionBuilder = Depends(get_checkout_builder)):
    """
    Crée une session Checkout (paiement unique) depuis un snapshot de panier.
    - Entrée JSON: { "items": [ {id, name, price, quantity, ...}, ... ], "customer_id": "cus_..."? }
    - Réponse: {url, session_id}
    - Erreurs: 400 panier vide / payload invalide, 502 si Stripe refuse la création
    """
    payload, error = await _parse_body(request, CartCheckoutIn)
    if error is not None:
        return error
    items = [it.to_item() for it in payload.items]
    try:
        session = await run_in_threadpool(builder.checkout_cart, items, payload.customer_id)
    except CommerceError as e:
        return error_response(e)
    return JSONResponse(session.to_dict())


@router.post("/subscription", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_subscription_checkout(request: Request, builder: CheckoutSessionBuilder = Depends(get_checkout_builder)):
    """
    Crée une session Checkout d'abonnement.
    - Entrée JSON: { "product": {id, name, price}, "price_id": "price_...", "customer_id"? }
    - Frais uniques = 5% du prix catalogue du produit.
    """
    payload, error = await _parse_body(request, SubscriptionCheckoutIn)
    if error is not None:
        return error
    try:
        session = await run_in_threadpool(
            builder.checkout_subscription, payload.product, payload.price_id, payload.customer_id
        )
    except CommerceError as e:
        return error_response(e)
    return JSONResponse(session.to_dict())


@router.get("/sessions/{session_id}")
async def get_checkout_session(session_id: str, builder: CheckoutSessionBuilder = Depends(get_checkout_builder)):
    """Détail d'une session Stripe (utilisé par la page de succès)."""
    try:
        session = await run_in_threadpool(builder.get_checkout_session, session_id)
    except CommerceError as e:
        return error_response(e)
    return JSONResponse(session)


@webhook_router.post("/stripe", include_in_schema=False)
async def stripe_webhook(request: Request, dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)):
    """
    Webhook Stripe: vérifie la signature puis route l'événement.
    - 200: résultat du handler ({success, handled?} ou {success, <resource>_id})
    - 400: signature absente/invalide ou corps illisible ({"error": ...})
    - 500: effet de bord en échec, Stripe relivrera ({"error": ...})
    """
    signature = request.headers.get("stripe-signature")
    payload = await request.body()
    try:
        result = await run_in_threadpool(dispatcher.handle, payload, signature)
    except HandlerSideEffectError as e:
        logger.error("payments.webhook side effect failed: %s", e.message)
        return error_response(e)
    except WebhookError as e:
        logger.warning("payments.webhook rejected: %s", e.message)
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception:
        logger.exception("Erreur stripe_webhook")
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})
    return JSONResponse(result)
