"""
CartStore: état panier possédé par la racine de composition (ou la requête).

Chaque mutation sérialise tout le panier et l'écrit dans le CartStorage avant de rendre la main.
L'hydratation au démarrage retombe sur un panier vide si les données sont illisibles.
"""
import json
import logging
from typing import Callable, List, Optional

from storefront.config import CART_STORAGE_KEY
from storefront.payments import fees
from .models import CartItem, CartTotals, InvalidQuantity
from .storage import CartStorage

logger = logging.getLogger(__name__)


class CartStore:
    def __init__(self, storage: CartStorage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.items: List[CartItem] = []
        self.is_open = False
        self._open_listeners: List[Callable[["CartStore"], None]] = []
        self.hydrate()

    # --- persistance ---
    def hydrate(self) -> None:
        """
        Recharge le panier depuis le stockage.
        - Données absentes ou illisibles -> panier vide (warning loggé, jamais d'exception).
        - Ignore les entrées sans id, de quantité < 1 ou de prix négatif.
        """
        try:
            raw = self.storage.get(self.key)
            if not raw:
                self.items = []
                return
            entries = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
            if not isinstance(entries, list):
                raise ValueError("payload panier inattendu")
            items: List[CartItem] = []
            for entry in entries:
                try:
                    item = CartItem.from_dict(entry)
                except (KeyError, TypeError, ValueError, AttributeError):
                    logger.warning("cart.hydrate skipped entry key=%s entry=%r", self.key, entry)
                    continue
                if item.quantity >= 1 and item.price >= 0:
                    items.append(item)
            self.items = items
        except Exception:
            logger.warning("cart.hydrate failed key=%s, starting with an empty cart", self.key, exc_info=True)
            self.items = []

    def _persist(self) -> CartTotals:
        payload = json.dumps([item.to_dict() for item in self.items]).encode("utf-8")
        self.storage.set(self.key, payload)
        return self.totals

    # --- mutations ---
    def add_item(self, item: CartItem, quantity: int = 1) -> CartTotals:
        """
        Ajoute un article ou incrémente la quantité d'une entrée existante (même id).
        Ouvre le panier s'il était fermé.
        """
        if quantity < 1:
            raise InvalidQuantity(f"Quantité invalide: {quantity}")
        existing = self.find(item.id)
        if existing:
            existing.quantity += quantity
        else:
            self.items.append(
                CartItem(
                    id=item.id,
                    name=item.name,
                    price=item.price,
                    quantity=quantity,
                    image=item.image,
                    price_id=item.price_id,
                    description=item.description,
                )
            )
        totals = self._persist()
        if not self.is_open:
            self.open()
        return totals

    def remove_item(self, item_id: str) -> CartTotals:
        self.items = [it for it in self.items if it.id != item_id]
        return self._persist()

    def update_quantity(self, item_id: str, quantity: int) -> CartTotals:
        """Quantité < 1 => suppression; id inconnu => no-op (aucune entrée créée)."""
        if quantity < 1:
            return self.remove_item(item_id)
        existing = self.find(item_id)
        if existing:
            existing.quantity = quantity
        return self._persist()

    def clear(self) -> CartTotals:
        self.items = []
        return self._persist()

    # --- état d'ouverture (UI, non persisté) ---
    def on_open(self, listener: Callable[["CartStore"], None]) -> None:
        self._open_listeners.append(listener)

    def open(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        for listener in list(self._open_listeners):
            listener(self)

    def close(self) -> None:
        self.is_open = False

    # --- valeurs dérivées ---
    def find(self, item_id: str) -> Optional[CartItem]:
        return next((it for it in self.items if it.id == item_id), None)

    @property
    def subtotal(self) -> int:
        return sum(it.line_total for it in self.items)

    @property
    def fee(self) -> int:
        return fees.compute_fee(self.subtotal)

    @property
    def total(self) -> int:
        return fees.compute_total(self.subtotal)

    @property
    def item_count(self) -> int:
        return sum(it.quantity for it in self.items)

    @property
    def totals(self) -> CartTotals:
        q = fees.quote(self.subtotal)
        return CartTotals(
            subtotal=q.subtotal,
            fee=q.fee,
            total=q.total,
            fee_percentage=q.fee_percentage,
            item_count=self.item_count,
        )

    def snapshot(self) -> dict:
        return {
            "items": [it.to_dict() for it in self.items],
            "is_open": self.is_open,
            **self.totals.to_dict(),
        }
