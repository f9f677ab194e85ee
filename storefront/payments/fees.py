"""
Calcul des frais de transaction (pur: pas de Stripe, pas de stockage).

Les montants sont en unités mineures (centimes). L'arrondi est ROUND_HALF_UP
sur le produit décimal exact, ce qui garantit fee + subtotal == total.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real

from .errors import InvalidAmount

FEE_PERCENTAGE = 5
FEE_LINE_NAME = f"Transaction Fee ({FEE_PERCENTAGE}%)"


@dataclass(frozen=True)
class FeeQuote:
    subtotal: int
    fee: int
    total: int
    fee_percentage: int = FEE_PERCENTAGE

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "fee": self.fee,
            "total": self.total,
            "fee_percentage": self.fee_percentage,
        }


def _check_amount(amount, integral: bool = False) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, Real):
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    if not math.isfinite(amount) or amount < 0:
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    if integral and amount != int(amount):
        # unités mineures: 12.5 centimes n'existe pas
        raise InvalidAmount(f"Montant non entier (centimes attendus): {amount!r}")
    return Decimal(amount)


def compute_fee(subtotal, fee_percentage=FEE_PERCENTAGE) -> int:
    """
    Frais de traitement (centimes) pour un sous-total donné.
    - fee = round_half_up(subtotal * fee_percentage / 100)
    - Soulève InvalidAmount si subtotal est négatif, non fini, non entier ou non numérique.
    """
    base = _check_amount(subtotal, integral=True)
    pct = _check_amount(fee_percentage)
    fee = (base * pct / Decimal(100)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(fee)


def compute_total(subtotal, fee_percentage=FEE_PERCENTAGE) -> int:
    fee = compute_fee(subtotal, fee_percentage)
    return int(_check_amount(subtotal, integral=True)) + fee


def quote(subtotal, fee_percentage=FEE_PERCENTAGE) -> FeeQuote:
    """Sous-total, frais et total regroupés (valeur dérivée, jamais persistée)."""
    fee = compute_fee(subtotal, fee_percentage)
    total = compute_total(subtotal, fee_percentage)
    return FeeQuote(subtotal=total - fee, fee=fee, total=total, fee_percentage=fee_percentage)


def format_currency(amount: int, currency: str = "USD") -> str:
    """
    Formate un montant en centimes: 1234 -> "$12.34".
    Les devises sans symbole connu sont suffixées par leur code ISO.
    """
    symbols = {"USD": "$", "EUR": "€", "GBP": "£"}
    value = Decimal(int(amount)) / Decimal(100)
    text = f"{value:,.2f}"
    symbol = symbols.get(currency.upper())
    if symbol:
        return f"-{symbol}{text[1:]}" if text.startswith("-") else f"{symbol}{text}"
    return f"{text} {currency.upper()}"


def format_fee_text(subtotal, currency: str = "USD") -> str:
    """Libellé d'affichage des frais, ex: "$5.00 (5%)"."""
    return f"{format_currency(compute_fee(subtotal), currency)} ({FEE_PERCENTAGE}%)"
