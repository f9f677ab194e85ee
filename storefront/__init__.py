"""
Storefront: moteur de transaction (panier, frais, checkout Stripe, webhooks).
"""

__version__ = "0.1.0"
