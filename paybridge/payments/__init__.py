"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe (commande fournisseur), signature de confirmation et conversions monétaires.
"""

from .money import currency_exponent, minor_unit_factor, to_minor_units
from .signature import generate_signature, verify_signature
from .stripe_client import PAYMENT_PROVIDER, ProviderOrder, StripeGateway, make_receipt

__all__ = [
    # money
    "currency_exponent",
    "minor_unit_factor",
    "to_minor_units",
    # signature
    "generate_signature",
    "verify_signature",
    # stripe
    "PAYMENT_PROVIDER",
    "ProviderOrder",
    "StripeGateway",
    "make_receipt",
]
