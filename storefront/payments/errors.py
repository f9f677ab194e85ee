"""
Exceptions métier de la feature 'payments' (frais, panier, checkout, webhooks).
Les vues les traduisent en réponses JSON; aucune n'est avalée dans les services.
"""


class CommerceError(Exception):
    """Racine de toutes les erreurs du moteur de transaction."""

    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidAmount(CommerceError, ValueError):
    """Montant négatif, non fini ou non numérique fourni au calcul des frais."""


# --- Checkout ---
class CheckoutError(CommerceError):
    pass


class EmptyCartError(CheckoutError):
    pass


class MissingProductError(CheckoutError):
    pass


class MissingPriceError(CheckoutError):
    pass


class SessionCreationError(CheckoutError):
    """Échec côté fournisseur lors de la création de la session (pas de retry local)."""

    status_code = 502


class SessionLookupError(CheckoutError):
    status_code = 404


# --- Webhooks ---
class WebhookError(CommerceError):
    pass


class SignatureVerificationError(WebhookError):
    """Signature absente ou invalide: la livraison est rejetée, aucun handler n'est exécuté."""


class MalformedEventError(WebhookError):
    pass


class HandlerSideEffectError(WebhookError):
    """Effet de bord d'un handler en échec: Stripe doit relivrer l'événement."""

    status_code = 500
