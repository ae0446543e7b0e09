"""
Conversion montants <-> unités mineures (centimes, paise...).
Une seule conversion explicite, fondée sur la précision connue de la devise.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

# module paybridge.payments.money
ZERO_DECIMAL_CURRENCIES = {
    "BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG",
    "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
}
THREE_DECIMAL_CURRENCIES = {"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"}


def currency_exponent(currency: str) -> int:
    code = (currency or "").upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def minor_unit_factor(currency: str) -> int:
    """Facteur major -> minor (100 pour les devises à deux décimales)."""
    return 10 ** currency_exponent(currency)


def to_minor_units(amount: Union[Decimal, int, float, str], currency: str) -> int:
    """
    Convertit un montant décimal (unité majeure) en entier d'unités mineures.
    - Arrondi à l'entier le plus proche (half-up)
    - Soulève ValueError si le montant n'est pas numérique
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Montant non numérique: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Montant non numérique: {amount!r}")
    scaled = value * minor_unit_factor(currency)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
