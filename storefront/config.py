# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets Stripe et les URLs de redirection du checkout
- Expose les réglages du stockage panier, des signaux d'invalidation et du rate limiting
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")

# Stripe: clé secrète et secret de signature des webhooks
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# URL publique de l'application (base des redirections Stripe)
APP_URL = _clean_env(os.getenv("APP_URL") or os.getenv("BASE_URL") or "http://localhost:8000")
if APP_URL.endswith("/"):
    APP_URL = APP_URL.rstrip("/")

# Pages de succès/annulation du checkout ({CHECKOUT_SESSION_ID} est substitué par Stripe)
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/checkout/success?session_id={CHECKOUT_SESSION_ID}")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/checkout/cancel")
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "usd").lower()

# Panier: clé de stockage et Redis optionnel (sinon stockage mémoire du process)
CART_STORAGE_KEY = _clean_env(os.getenv("CART_STORAGE_KEY") or "digital_store_cart")
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or "")
CART_TTL_SECONDS = int(os.getenv("CART_TTL_SECONDS", str(60 * 60 * 24 * 30)))

# Signaux d'invalidation émis par les webhooks (Redis pub/sub optionnel)
INVALIDATION_REDIS_URL = _clean_env(os.getenv("INVALIDATION_REDIS_URL") or "")
INVALIDATION_CHANNEL = _clean_env(os.getenv("INVALIDATION_CHANNEL") or "storefront:invalidate")

# Cookies / session navigateur
COOKIE_SECURE = _flag("COOKIE_SECURE")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Rate limiting (fastapi-limiter)
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")
