"""Modèles de la commande et de la requête canonique (action + payload).
- Les montants sont des entiers en unité mineure.
- OrderDraft.to_row() produit la ligne stockée (colonnes snake_case).
"""
# module paybridge.orders.models
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

ACTION_CREATE_ORDER = "createOrder"
ACTION_VERIFY_PAYMENT = "verifyPayment"
ACTIONS = (ACTION_CREATE_ORDER, ACTION_VERIFY_PAYMENT)

STATUS_CREATED = "created"
STATUS_PAID = "paid"


class ProductSnapshot(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None


class LineItem(BaseModel):
    product_id: str = Field(serialization_alias="productId")
    quantity: int
    unit_price: int = Field(serialization_alias="unitPrice")
    line_total: int = Field(serialization_alias="lineTotal")
    product_snapshot: ProductSnapshot = Field(serialization_alias="productSnapshot")


class PricedCart(BaseModel):
    line_items: List[LineItem]
    subtotal: int
    total: int


class OrderDraft(BaseModel):
    user_id: str
    line_items: List[LineItem]
    subtotal: int
    total_amount: int
    currency: str
    shipping_address: Union[Dict[str, Any], str, None] = None
    payment_provider: str
    provider_order_id: str
    provider_order: Dict[str, Any] = Field(default_factory=dict)
    receipt: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "line_items": [li.model_dump(by_alias=True) for li in self.line_items],
            "subtotal": self.subtotal,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "shipping_address": self.shipping_address if self.shipping_address is not None else {},
            "payment_status": STATUS_CREATED,
            "payment_provider": self.payment_provider,
            "payment_reference": None,
            "provider_order_id": self.provider_order_id,
            "provider_order": self.provider_order,
            "receipt": self.receipt,
            "provider_payment_id": None,
            "provider_signature": None,
        }


class OrderRequest(BaseModel):
    action: str
    payload: Dict[str, Any] = Field(default_factory=dict)
