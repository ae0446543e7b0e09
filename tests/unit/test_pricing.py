import pytest

from paybridge.orders import pricing
from paybridge.orders.errors import InvalidComputedTotal, ProductNotFound, ValidationError


def _resolve(catalog, items, currency="INR", price_unit="minor"):
    return pricing.resolve_items(items, currency, catalog.get_products_map, price_unit=price_unit)


def test_resolve_items_computes_lines_and_total_from_catalog(catalog):
    cart = _resolve(catalog, [{"productId": "p1", "quantity": 2}, {"productId": "p2", "quantity": 1}])

    assert cart.total == 2 * 49900 + 19900
    assert cart.subtotal == cart.total
    assert [li.product_id for li in cart.line_items] == ["p1", "p2"]
    first = cart.line_items[0]
    assert (first.quantity, first.unit_price, first.line_total) == (2, 49900, 99800)
    assert first.product_snapshot.name == "T-shirt"
    assert first.product_snapshot.category == "apparel"


def test_client_supplied_prices_are_ignored(catalog):
    cart = _resolve(catalog, [{"productId": "p1", "quantity": 1, "unitPrice": 1, "price": 1, "lineTotal": 1}])
    assert cart.total == 49900


def test_duplicate_products_stay_separate_lines_with_single_lookup(catalog):
    cart = _resolve(catalog, [{"productId": "p1", "quantity": 1}, {"productId": "p1", "quantity": 2}])

    assert [li.quantity for li in cart.line_items] == [1, 2]
    assert cart.total == 3 * 49900
    assert len(catalog.calls) == 1


def test_numeric_string_quantity_and_int_product_id_are_accepted(catalog):
    catalog.products["7"] = {"id": "7", "name": "Cap", "category": "apparel", "unit_price": 1000}
    cart = _resolve(catalog, [{"productId": 7, "quantity": "3"}])
    assert cart.line_items[0].product_id == "7"
    assert cart.total == 3000


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "abc", True, None])
def test_invalid_quantity_fails_before_any_catalog_read(catalog, quantity):
    items = [{"productId": "p1", "quantity": 1}, {"productId": "p2", "quantity": quantity}]
    with pytest.raises(ValidationError) as exc:
        _resolve(catalog, items)
    assert exc.value.message == "Invalid quantity for product p2"
    assert catalog.calls == []


@pytest.mark.parametrize("items,message", [
    ([], "items required"),
    (None, "items required"),
    (["p1"], "Invalid item"),
    ([{"quantity": 1}], "productId required"),
    ([{"productId": "  ", "quantity": 1}], "productId required"),
])
def test_malformed_items_are_rejected(catalog, items, message):
    with pytest.raises(ValidationError) as exc:
        _resolve(catalog, items)
    assert exc.value.message == message


def test_unknown_product_fails_whole_cart(catalog):
    with pytest.raises(ProductNotFound) as exc:
        _resolve(catalog, [{"productId": "p1", "quantity": 1}, {"productId": "zzz", "quantity": 1}])
    assert exc.value.message == "Product not found: zzz"


def test_zero_total_is_rejected(catalog):
    with pytest.raises(InvalidComputedTotal) as exc:
        _resolve(catalog, [{"productId": "free", "quantity": 3}])
    assert exc.value.message == "Invalid amount"


def test_major_unit_catalog_prices_are_converted_once(catalog):
    catalog.products["p3"] = {"id": "p3", "name": "Poster", "category": "art", "unit_price": "499.99"}
    cart = _resolve(catalog, [{"productId": "p3", "quantity": 2}], price_unit="major")
    assert cart.line_items[0].unit_price == 49999
    assert cart.total == 99998


@pytest.mark.parametrize("unit_price", [10.5, -100, "abc", None, True])
def test_invalid_catalog_price_is_rejected(catalog, unit_price):
    catalog.products["bad"] = {"id": "bad", "name": "Broken", "category": "x", "unit_price": unit_price}
    with pytest.raises(InvalidComputedTotal) as exc:
        _resolve(catalog, [{"productId": "bad", "quantity": 1}])
    assert exc.value.message == "Invalid catalog price for product bad"
