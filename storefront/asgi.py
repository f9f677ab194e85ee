"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn + uvicorn workers) importe `storefront.asgi:app`.
- Toute la configuration (routers, middlewares, collaborateurs) est centralisée dans
  storefront.app_setup.factory; ce fichier ne fait qu'exposer l'instance.
"""

from storefront.app_setup.factory import create_app

app = create_app()
