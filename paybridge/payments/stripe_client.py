"""
Adaptateur Stripe: ouvre la « commande fournisseur » (PaymentIntent) pour un montant calculé.
Centralise la configuration du SDK et la traduction des erreurs en GatewayError.
"""
import logging
import time
from typing import Any, Dict, Optional

import stripe
from pydantic import BaseModel

from paybridge.config import Settings
from paybridge.orders.errors import GatewayError

logger = logging.getLogger(__name__)

PAYMENT_PROVIDER = "stripe"


class ProviderOrder(BaseModel):
    id: str
    status: Optional[str] = None
    amount: int
    currency: str
    receipt: str

    def snapshot(self) -> Dict[str, Any]:
        return self.model_dump()


def make_receipt() -> str:
    """Clé d'idempotence par tentative, dérivée d'un horodatage monotone croissant."""
    return f"rcpt_{time.time_ns()}"


# module paybridge.payments.stripe_client
class StripeGateway:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def public_key(self) -> str:
        return self.settings.stripe_public_key

    def require_stripe(self):
        """
        Prépare et retourne le module stripe prêt à l’emploi (clé secrète issue des Settings).
        """
        stripe.api_key = self.settings.stripe_secret_key
        return stripe

    def open_order(self, amount_minor: int, currency: str, idempotency_key: str) -> ProviderOrder:
        """
        Crée un PaymentIntent pour amount_minor (entier, unité mineure).
        - idempotency_key: transmis tel quel à Stripe (détection des doublons côté passerelle)
        - Toute erreur SDK (réseau, validation, auth) devient GatewayError
        """
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, int) or amount_minor <= 0:
            raise GatewayError("Invalid amount")
        if not idempotency_key:
            raise GatewayError("Missing idempotency key")

        client = self.require_stripe()
        options = {
            "amount": amount_minor,
            "currency": currency.lower(),
            "metadata": {"receipt": idempotency_key},
        }
        logger.info("stripe.open_order options=%s", options)
        try:
            intent = client.PaymentIntent.create(idempotency_key=idempotency_key, **options)
        except Exception as e:
            logger.exception("stripe.open_order failed receipt=%s", idempotency_key)
            raise GatewayError("Payment order creation failed: " + (str(e) or e.__class__.__name__)) from e

        intent_id = getattr(intent, "id", None)
        if not intent_id:
            raise GatewayError("Payment provider did not return an order id")

        order = ProviderOrder(
            id=intent_id,
            status=getattr(intent, "status", None),
            amount=amount_minor,
            currency=currency.upper(),
            receipt=idempotency_key,
        )
        logger.info("stripe.open_order created id=%s status=%s", order.id, order.status)
        return order
