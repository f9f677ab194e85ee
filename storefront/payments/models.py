"""
Types du checkout indépendants du fournisseur: lignes, requête et session.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from storefront.cart.models import CartItemIn


@dataclass
class CheckoutLineItem:
    name: str
    quantity: int
    unit_amount: Optional[int] = None  # None: montant géré par le fournisseur (price_id)
    description: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    price_id: Optional[str] = None
    images: List[str] = field(default_factory=list)
    recurring: bool = False


@dataclass
class CheckoutRequest:
    line_items: List[CheckoutLineItem]
    mode: str
    success_url: str
    cancel_url: str
    metadata: Dict[str, str] = field(default_factory=dict)
    customer_id: Optional[str] = None

    @property
    def fee_line(self) -> Optional[CheckoutLineItem]:
        return self.line_items[-1] if self.line_items else None


@dataclass(frozen=True)
class CheckoutSession:
    url: str
    session_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "session_id": self.session_id}


# --- Schémas d'entrée API ---
class CartCheckoutIn(BaseModel):
    items: List[CartItemIn] = Field(default_factory=list)
    customer_id: Optional[str] = None


class ProductIn(BaseModel):
    id: str = ""
    name: str = ""
    price: int = Field(ge=0)  # prix catalogue (centimes), obligatoire: base des frais


class SubscriptionCheckoutIn(BaseModel):
    product: Optional[ProductIn] = None
    price_id: Optional[str] = None
    customer_id: Optional[str] = None
