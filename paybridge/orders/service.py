"""Couche service du cycle de vie des commandes (contrôleur).
Rôles:
- createOrder: recalcul du prix depuis le catalogue, commande fournisseur Stripe, écriture en base.
- verifyPayment: contrôle de la signature HMAC puis passage unique created -> paid.
- handle: dispatch d'une OrderRequest et conversion des erreurs en {"ok": False, "error": ...}.
Ordre imposé:
- aucune écriture sans commande fournisseur; aucune mise à jour avant la vérification de signature.
"""
from typing import Any, Dict, Optional, Tuple
import logging

from paybridge.catalog.repository import CatalogRepository
from paybridge.config import Settings
from paybridge.orders import pricing
from paybridge.orders.errors import (
    OrderAlreadyPaid,
    OrderError,
    OrderMismatch,
    OrderNotFound,
    OrderPersistError,
    InvalidSignature,
    StoreError,
    ValidationError,
)
from paybridge.orders.models import (
    ACTION_CREATE_ORDER,
    ACTION_VERIFY_PAYMENT,
    STATUS_CREATED,
    STATUS_PAID,
    OrderDraft,
    OrderRequest,
)
from paybridge.orders.repository import OrderRepository
from paybridge.payments.signature import verify_signature
from paybridge.payments.stripe_client import PAYMENT_PROVIDER, StripeGateway, make_receipt

logger = logging.getLogger(__name__)

VERIFIED_MESSAGE = "Payment verified"
ALREADY_VERIFIED_MESSAGE = "Payment already verified"


def _required_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def _exact_str(payload: Dict[str, Any], key: str) -> str:
    # Champs signés: comparés et stockés tels que reçus (aucun strip)
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _currency_from(payload: Dict[str, Any], default: str) -> str:
    raw = payload.get("currency")
    if raw is None or raw == "":
        return default
    code = raw.strip().upper() if isinstance(raw, str) else ""
    if len(code) != 3 or not code.isalpha():
        raise ValidationError("Invalid currency")
    return code


# module paybridge.orders.service
class OrderService:
    def __init__(
        self,
        settings: Settings,
        catalog: CatalogRepository,
        gateway: StripeGateway,
        orders: OrderRepository,
    ):
        self.settings = settings
        self.catalog = catalog
        self.gateway = gateway
        self.orders = orders

    # --- createOrder ---
    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crée une commande à partir d'un panier {productId, quantity}.
        Étapes:
          1) Valider userId et items
          2) Recalculer les montants (pricing.resolve_items) -> aucune suite en cas d'échec
          3) Ouvrir la commande fournisseur (Stripe) -> aucune écriture en cas d'échec
          4) Écrire la commande; en cas d'échec, renvoyer providerOrderId + amount (réconciliation)
        """
        payload = payload or {}
        user_id = _required_str(payload, "userId")
        if not user_id:
            raise ValidationError("userId required")
        items = payload.get("items")
        if not isinstance(items, list) or not items:
            raise ValidationError("items required")
        currency = _currency_from(payload, self.settings.default_currency)
        shipping_address = payload.get("shippingAddress")
        if shipping_address is not None and not isinstance(shipping_address, (dict, str)):
            raise ValidationError("Invalid shippingAddress")

        cart = pricing.resolve_items(
            items,
            currency,
            self.catalog.get_products_map,
            price_unit=self.settings.catalog_price_unit,
        )

        idempotency_key = _required_str(payload, "idempotencyKey") or make_receipt()
        provider_order = self.gateway.open_order(cart.total, currency, idempotency_key)

        draft = OrderDraft(
            user_id=user_id,
            line_items=cart.line_items,
            subtotal=cart.subtotal,
            total_amount=cart.total,
            currency=currency,
            shipping_address=shipping_address,
            payment_provider=PAYMENT_PROVIDER,
            provider_order_id=provider_order.id,
            provider_order=provider_order.snapshot(),
            receipt=idempotency_key,
        )
        try:
            order_id = self.orders.create(draft)
        except StoreError as e:
            # Commande fournisseur orpheline: on la signale pour réconciliation manuelle
            logger.error(
                "orders.create_order orphan provider order provider_order_id=%s amount=%s",
                provider_order.id, cart.total,
            )
            raise OrderPersistError(e.message, provider_order_id=provider_order.id, amount=cart.total) from e

        logger.info(
            "orders.create_order ok order_id=%s provider_order_id=%s amount=%s currency=%s",
            order_id, provider_order.id, cart.total, currency,
        )
        return {
            "ok": True,
            "orderId": order_id,
            "providerOrderId": provider_order.id,
            "amount": cart.total,
            "currency": currency,
            "providerKeyId": self.gateway.public_key,
        }

    # --- verifyPayment ---
    def verify_payment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Vérifie la confirmation de paiement puis marque la commande payée.
        - Signature d'abord: aucune lecture/écriture en base si elle est invalide
        - Re-vérifier une commande déjà payée avec la même signature est un no-op réussi
        """
        payload = payload or {}
        order_id = _required_str(payload, "orderId") or None
        provider_order_id = _exact_str(payload, "providerOrderId")
        provider_payment_id = _exact_str(payload, "providerPaymentId")
        provider_signature = _exact_str(payload, "providerSignature")
        if not provider_order_id or not provider_payment_id or not provider_signature:
            raise ValidationError("Missing verification fields")

        if not verify_signature(provider_order_id, provider_payment_id, provider_signature, self.settings.signature_secret):
            logger.warning("orders.verify_payment invalid signature provider_order_id=%s", provider_order_id)
            raise InvalidSignature()

        order = self._resolve_order(order_id, provider_order_id)
        if order.get("payment_status") == STATUS_PAID:
            return self._already_paid_response(order, provider_payment_id, provider_signature)

        fields = {
            "payment_status": STATUS_PAID,
            "provider_payment_id": provider_payment_id,
            "provider_signature": provider_signature,
            "payment_reference": provider_payment_id,
        }
        updated = self.orders.update(order["id"], fields, only_if_status=STATUS_CREATED)
        if updated is None:
            # Un autre vérificateur est passé entre la lecture et l'écriture
            current = self.orders.get(order["id"])
            if not current:
                raise OrderNotFound()
            if current.get("payment_status") == STATUS_PAID:
                return self._already_paid_response(current, provider_payment_id, provider_signature)
            raise StoreError("Failed to update order")

        logger.info("orders.verify_payment paid order_id=%s provider_payment_id=%s", order["id"], provider_payment_id)
        return {"ok": True, "orderId": updated.get("id") or order["id"], "message": VERIFIED_MESSAGE}

    def _resolve_order(self, order_id: Optional[str], provider_order_id: str) -> Dict[str, Any]:
        if order_id:
            order = self.orders.get(order_id)
            if not order:
                raise OrderNotFound()
            if order.get("provider_order_id") != provider_order_id:
                raise OrderMismatch()
            return order
        order = self.orders.find_by_provider_order_id(provider_order_id)
        if not order:
            raise OrderNotFound()
        return order

    def _already_paid_response(self, order: Dict[str, Any], provider_payment_id: str, provider_signature: str) -> Dict[str, Any]:
        if (
            order.get("provider_payment_id") == provider_payment_id
            and order.get("provider_signature") == provider_signature
        ):
            logger.info("orders.verify_payment duplicate confirmation order_id=%s", order.get("id"))
            return {"ok": True, "orderId": order.get("id"), "message": ALREADY_VERIFIED_MESSAGE}
        logger.warning("orders.verify_payment conflicting confirmation order_id=%s", order.get("id"))
        raise OrderAlreadyPaid()

    # --- dispatch ---
    def execute(self, request: OrderRequest) -> Dict[str, Any]:
        """Exécute l'action demandée; les erreurs métier (OrderError) sont propagées."""
        if request.action == ACTION_CREATE_ORDER:
            return self.create_order(request.payload)
        if request.action == ACTION_VERIFY_PAYMENT:
            return self.verify_payment(request.payload)
        raise ValidationError(f"Unknown action: {request.action}")

    def respond(self, request: OrderRequest) -> Tuple[Dict[str, Any], int]:
        """
        Exécute l'action et retourne (corps, code HTTP); le corps est toujours {ok, ...}.
        - OrderError -> {"ok": False, "error": ...} avec le code de l'erreur
        - toute autre exception est journalisée (trace complète) -> "Internal error", 500
        """
        try:
            return self.execute(request), 200
        except OrderError as e:
            logger.info("orders.respond action=%s failed: %s", request.action, e.message)
            return e.to_response(), e.status_code
        except Exception:
            logger.exception("orders.respond action=%s unexpected error", request.action)
            return {"ok": False, "error": "Internal error"}, 500

    def handle(self, request: OrderRequest) -> Dict[str, Any]:
        return self.respond(request)[0]


def build_order_service(settings: Settings) -> OrderService:
    """Assemble le contrôleur avec les collaborateurs réels (Supabase, Stripe)."""
    return OrderService(
        settings=settings,
        catalog=CatalogRepository(settings),
        gateway=StripeGateway(settings),
        orders=OrderRepository(settings),
    )
