import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from storefront.app_setup.exceptions import error_response
from storefront.app_setup.services import get_cart_storage, get_checkout_builder
from storefront.config import CART_STORAGE_KEY
from storefront.payments.checkout import CheckoutSessionBuilder
from storefront.payments.errors import CommerceError
from storefront.utils.rate_limit import optional_rate_limit
from .models import CartItemIn
from .storage import CartStorage
from .store import CartStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

SESSION_CART_ID = "cart_id"


class QuantityIn(BaseModel):
    quantity: int


class CartCheckoutOptions(BaseModel):
    customer_id: str | None = None


def get_cart(request: Request, storage: CartStorage = Depends(get_cart_storage)) -> CartStore:
    """
    CartStore de la session navigateur courante (hydraté depuis le stockage à chaque requête).
    L'identifiant de panier est créé dans la session cookie au premier accès.
    """
    cart_id = request.session.get(SESSION_CART_ID)
    if not cart_id:
        cart_id = uuid4().hex
        request.session[SESSION_CART_ID] = cart_id
    return CartStore(storage, key=f"{CART_STORAGE_KEY}:{cart_id}")


@router.get("")
def read_cart(cart: CartStore = Depends(get_cart)):
    return cart.snapshot()


@router.post("/items")
def add_cart_item(payload: CartItemIn, cart: CartStore = Depends(get_cart)):
    """
    Ajoute un article (ou incrémente sa quantité si l'id est déjà présent).
    - Entrée JSON: {id, name, price (centimes), quantity?, image?, price_id?, description?}
    """
    item = payload.to_item()
    cart.add_item(item, quantity=payload.quantity)
    logger.info("cart.add id=%s quantity=%s items=%s", item.id, payload.quantity, cart.item_count)
    return cart.snapshot()


@router.patch("/items/{item_id}")
def update_cart_item(item_id: str, payload: QuantityIn, cart: CartStore = Depends(get_cart)):
    """Quantité < 1 => l'article est retiré; id inconnu => panier inchangé."""
    cart.update_quantity(item_id, payload.quantity)
    return cart.snapshot()


@router.delete("/items/{item_id}")
def remove_cart_item(item_id: str, cart: CartStore = Depends(get_cart)):
    cart.remove_item(item_id)
    return cart.snapshot()


@router.delete("")
def clear_cart(cart: CartStore = Depends(get_cart)):
    cart.clear()
    return cart.snapshot()


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def checkout_cart(
    options: CartCheckoutOptions | None = None,
    cart: CartStore = Depends(get_cart),
    builder: CheckoutSessionBuilder = Depends(get_checkout_builder),
):
    """
    Crée la session Checkout depuis le panier de la session.
    Le panier n'est pas vidé ici: la page de succès s'en charge après paiement.
    """
    customer_id = options.customer_id if options else None
    try:
        session = await run_in_threadpool(builder.checkout_cart, list(cart.items), customer_id)
    except CommerceError as e:
        return error_response(e)
    return JSONResponse(session.to_dict())
