"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le client Stripe, les métadonnées, le checkout hébergé, le débit hors session
et le règlement des sessions Checkout.
Les sous-modules sont importés à la demande (payment_methods importe stripe_client).
"""

__all__ = [
    "stripe_client",
    "metadata",
    "models",
    "checkout",
    "charges",
    "service",
    "views",
]
