"""
Module 'cart' (feature-first): point d'entrée public.
Réunit les types panier, les adaptateurs de stockage et le CartStore.
"""

from .models import CartItem, CartItemIn, CartTotals, InvalidQuantity
from .storage import CartStorage, MemoryStorage, RedisStorage
from .store import CartStore

__all__ = [
    # types
    "CartItem",
    "CartItemIn",
    "CartTotals",
    "InvalidQuantity",
    # stockage
    "CartStorage",
    "MemoryStorage",
    "RedisStorage",
    # store
    "CartStore",
]
