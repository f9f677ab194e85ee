"""
Construction des sessions Checkout: panier (paiement unique) ou abonnement.

Les frais de transaction sont toujours une ligne distincte, ajoutée après les produits.
La création effective de la session est déléguée au PaymentProvider injecté.
"""
import logging
from typing import Dict, Iterable, List, Optional

from storefront.cart.models import CartItem
from . import fees
from .errors import (
    EmptyCartError,
    MissingPriceError,
    MissingProductError,
    SessionCreationError,
    SessionLookupError,
)
from .models import CheckoutLineItem, CheckoutRequest, CheckoutSession, ProductIn
from .stripe_client import PaymentProvider

logger = logging.getLogger(__name__)

# Limite Stripe: 500 caractères par valeur de metadata
METADATA_VALUE_MAX = 500


def fee_line_item(fee: int, description: str = "Standard 5% processing fee") -> CheckoutLineItem:
    """Ligne synthétique des frais: quantité 1, non récurrente, nom fixe et reconnaissable."""
    return CheckoutLineItem(
        name=fees.FEE_LINE_NAME,
        description=description,
        unit_amount=fee,
        quantity=1,
        recurring=False,
    )


def cart_line_items(items: Iterable[CartItem]) -> List[CheckoutLineItem]:
    """
    Une ligne par article (1:1), prix unitaire et quantité conservés.
    L'id produit est recopié dans la metadata de la ligne pour la réconciliation.
    """
    return [
        CheckoutLineItem(
            name=item.name or "Article",
            description=item.description or "",
            unit_amount=item.price,
            quantity=item.quantity,
            metadata={"product_id": item.id},
            images=[item.image] if item.image else [],
        )
        for item in items
    ]


def make_metadata(items: Iterable[CartItem]) -> Dict[str, str]:
    """
    Sérialise la liste des produits achetés (ids joints par des virgules).
    Au-delà de la limite Stripe, on ne garde que les ids entiers qui tiennent (jamais d'id coupé).
    """
    ids = [item.id for item in items]
    kept: List[str] = []
    size = 0
    for product_id in ids:
        extra = len(product_id) + (1 if kept else 0)
        if size + extra > METADATA_VALUE_MAX:
            break
        kept.append(product_id)
        size += extra
    if len(kept) < len(ids):
        logger.warning("payments.checkout metadata truncated kept=%s total=%s", len(kept), len(ids))
    return {"product_ids": ",".join(kept)}


class CheckoutSessionBuilder:
    def __init__(self, provider: PaymentProvider, success_url: str, cancel_url: str):
        self.provider = provider
        self.success_url = success_url
        self.cancel_url = cancel_url

    # --- construction (pure) ---
    def build_one_time_checkout(self, cart: Iterable[CartItem], customer_id: Optional[str] = None) -> CheckoutRequest:
        """
        Requête Checkout 'payment' pour un panier.
        - Soulève EmptyCartError si le panier est vide.
        - Frais calculés sur le sous-total du panier (pas sur les lignes converties).
        """
        items = list(cart or [])
        if not items:
            raise EmptyCartError("Cart is empty")
        subtotal = sum(item.price * item.quantity for item in items)
        line_items = cart_line_items(items)
        line_items.append(fee_line_item(fees.compute_fee(subtotal)))
        return CheckoutRequest(
            line_items=line_items,
            mode="payment",
            success_url=self.success_url,
            cancel_url=self.cancel_url,
            metadata=make_metadata(items),
            customer_id=customer_id or None,
        )

    def build_subscription_checkout(
        self,
        product: Optional[ProductIn],
        price_id: Optional[str],
        customer_id: Optional[str] = None,
    ) -> CheckoutRequest:
        """
        Requête Checkout 'subscription': exactement deux lignes.
        - le prix récurrent (price_id, quantité 1, montant géré par Stripe)
        - les frais uniques = 5% du prix catalogue du produit (le montant récurrent facturé
          n'est pas connu localement)
        """
        if product is None or not product.id:
            raise MissingProductError("Product is required")
        if not price_id:
            raise MissingPriceError("Price ID is required")
        line_items = [
            CheckoutLineItem(name=product.name, quantity=1, price_id=price_id, recurring=True),
            fee_line_item(fees.compute_fee(product.price), description="One-time processing fee"),
        ]
        return CheckoutRequest(
            line_items=line_items,
            mode="subscription",
            success_url=self.success_url,
            cancel_url=self.cancel_url,
            metadata={"product_id": product.id},
            customer_id=customer_id or None,
        )

    # --- délégation au fournisseur ---
    def create_session(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Demande au fournisseur la session hébergée.
        Toute erreur fournisseur devient SessionCreationError (pas de retry: l'utilisateur relance).
        """
        try:
            session = self.provider.create_checkout_session(request)
        except Exception as e:
            logger.exception("payments.checkout create_session failed mode=%s", request.mode)
            raise SessionCreationError(f"Failed to create checkout session: {e}") from e
        if not session or not session.url:
            raise SessionCreationError("Failed to create checkout session: no redirect url")
        logger.info(
            "payments.checkout session=%s mode=%s lines=%s",
            session.session_id, request.mode, len(request.line_items),
        )
        return session

    def checkout_cart(self, cart: Iterable[CartItem], customer_id: Optional[str] = None) -> CheckoutSession:
        return self.create_session(self.build_one_time_checkout(cart, customer_id))

    def checkout_subscription(
        self,
        product: Optional[ProductIn],
        price_id: Optional[str],
        customer_id: Optional[str] = None,
    ) -> CheckoutSession:
        return self.create_session(self.build_subscription_checkout(product, price_id, customer_id))

    def get_checkout_session(self, session_id: str) -> dict:
        """Détail d'une session (line_items, customer, payment_intent, subscription dépliés)."""
        if not session_id:
            raise SessionLookupError("Session ID is required")
        try:
            return self.provider.retrieve_checkout_session(session_id)
        except Exception as e:
            logger.exception("payments.checkout get_session failed session_id=%s", session_id)
            raise SessionLookupError(f"Failed to fetch checkout session: {e}") from e
