"""
Logique de prix pure (pas de Stripe, pas de DB): le chargeur de catalogue est injecté.
Tous les montants sont recalculés depuis le catalogue; les prix/totaux envoyés
par le client ne sont jamais lus.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Tuple

from paybridge.orders.errors import InvalidComputedTotal, ProductNotFound, ValidationError
from paybridge.orders.models import LineItem, PricedCart, ProductSnapshot
from paybridge.payments.money import to_minor_units

ProductsLoader = Callable[[Iterable[str]], Dict[str, Dict[str, Any]]]


# module paybridge.orders.pricing
def _parse_quantity(value: Any) -> int:
    # bool est un int en Python: on le refuse explicitement
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(value)


def validate_items(items: Any) -> List[Tuple[str, int]]:
    """
    Valide le panier brut [{productId, quantity}, ...] avant toute lecture catalogue.
    - items non vide, productId non vide, quantity entier > 0
    - Retourne [(product_id, quantity), ...] dans l'ordre reçu (pas de fusion des doublons)
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items required")

    validated: List[Tuple[str, int]] = []
    for it in items:
        if not isinstance(it, dict):
            raise ValidationError("Invalid item")
        product_id = it.get("productId")
        product_id = str(product_id).strip() if isinstance(product_id, (str, int)) and not isinstance(product_id, bool) else ""
        if not product_id:
            raise ValidationError("productId required")
        try:
            qty = _parse_quantity(it.get("quantity"))
        except ValueError:
            raise ValidationError(f"Invalid quantity for product {product_id}")
        if qty <= 0:
            raise ValidationError(f"Invalid quantity for product {product_id}")
        validated.append((product_id, qty))
    return validated


def unit_price_from_product(product: Dict[str, Any], currency: str, price_unit: str = "minor") -> int:
    """
    Prix unitaire (unité mineure) d'un produit catalogue.
    - price_unit="minor": unit_price est déjà un entier en unité mineure
    - price_unit="major": unit_price est un décimal converti une seule fois via to_minor_units
    """
    raw = product.get("unit_price")
    product_id = product.get("id")
    if raw is None or isinstance(raw, bool):
        raise InvalidComputedTotal(f"Invalid catalog price for product {product_id}")
    try:
        if price_unit == "major":
            value = to_minor_units(raw, currency)
        else:
            dec = Decimal(str(raw))
            if dec != dec.to_integral_value():
                raise ValueError(raw)
            value = int(dec)
    except (InvalidOperation, ValueError):
        raise InvalidComputedTotal(f"Invalid catalog price for product {product_id}")
    if value < 0:
        raise InvalidComputedTotal(f"Invalid catalog price for product {product_id}")
    return value


def resolve_items(items: Any, currency: str, load_products: ProductsLoader, price_unit: str = "minor") -> PricedCart:
    """
    Calcule les lignes et le total faisant autorité.
    Étapes:
      1) validate_items: aucune lecture catalogue si une ligne est invalide
      2) load_products: une lecture groupée des IDs distincts
      3) ProductNotFound au premier ID manquant (pas de commande partielle)
      4) line_total = unit_price * quantity; total <= 0 -> InvalidComputedTotal
    """
    validated = validate_items(items)
    products = load_products([pid for pid, _ in validated])

    line_items: List[LineItem] = []
    total = 0
    for product_id, qty in validated:
        product = products.get(product_id)
        if not product:
            raise ProductNotFound(product_id)
        unit_price = unit_price_from_product(product, currency, price_unit)
        line_total = unit_price * qty
        line_items.append(LineItem(
            product_id=product_id,
            quantity=qty,
            unit_price=unit_price,
            line_total=line_total,
            product_snapshot=ProductSnapshot(name=product.get("name"), category=product.get("category")),
        ))
        total += line_total

    if total <= 0:
        raise InvalidComputedTotal("Invalid amount")
    return PricedCart(line_items=line_items, subtotal=total, total=total)
