"""
Taxonomie des erreurs du cycle de vie des commandes.
Toutes héritent d'OrderError et sont converties en {"ok": False, "error": ...}
à la frontière du contrôleur (OrderService.handle).
"""
from typing import Any, Dict, Optional


class OrderError(Exception):
    status_code = 400

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_response(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, **self.extra}


class ValidationError(OrderError):
    """Entrée absente ou invalide (userId, items, quantités, champs de vérification)."""


class ProductNotFound(OrderError):
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class InvalidComputedTotal(OrderError):
    pass


class GatewayError(OrderError):
    status_code = 502


class InvalidSignature(OrderError):
    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class OrderNotFound(OrderError):
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class OrderMismatch(OrderError):
    def __init__(self, message: str = "Order does not match provider order"):
        super().__init__(message)


class OrderAlreadyPaid(OrderError):
    status_code = 409

    def __init__(self, message: str = "Order already paid with a different payment"):
        super().__init__(message)


class StoreError(OrderError):
    status_code = 502


class OrderPersistError(StoreError):
    """
    Échec d'écriture après création de la commande côté passerelle.
    Expose providerOrderId et amount pour une réconciliation manuelle.
    """

    def __init__(self, message: str, provider_order_id: str, amount: int):
        super().__init__(message, extra={"providerOrderId": provider_order_id, "amount": amount})
        self.provider_order_id = provider_order_id
        self.amount = amount
