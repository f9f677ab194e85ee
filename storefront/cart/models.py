"""
Types du panier: CartItem et CartTotals.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class InvalidQuantity(ValueError):
    pass


@dataclass
class CartItem:
    id: str
    name: str
    price: int  # unit_amount en centimes
    quantity: int = 1
    image: Optional[str] = None
    price_id: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CartItem":
        """
        Reconstruit un CartItem depuis sa forme sérialisée (stockage ou payload API).
        - Soulève KeyError/TypeError/ValueError si l'entrée est inexploitable.
        """
        item_id = str(raw["id"]).strip()
        if not item_id:
            raise ValueError("id vide")
        return cls(
            id=item_id,
            name=str(raw.get("name") or ""),
            price=int(raw.get("price") or 0),
            quantity=int(raw["quantity"]) if raw.get("quantity") is not None else 1,
            image=raw.get("image") or None,
            price_id=raw.get("price_id") or raw.get("priceId") or None,
            description=raw.get("description") or None,
        )

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class CartTotals:
    subtotal: int
    fee: int
    total: int
    fee_percentage: int
    item_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CartItemIn(BaseModel):
    """Entrée API d'un article (ajout au panier ou snapshot de checkout)."""

    id: str = Field(min_length=1)
    name: str = ""
    price: int = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    image: Optional[str] = None
    price_id: Optional[str] = None
    description: Optional[str] = None

    def to_item(self) -> CartItem:
        return CartItem(
            id=self.id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            image=self.image,
            price_id=self.price_id,
            description=self.description,
        )
