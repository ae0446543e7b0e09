import os

# Configuration minimale avant tout import de l'app (le lifespan valide l'environnement)
os.environ.setdefault("STRIPE_PUBLIC_KEY", "pk_test_bridge")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_bridge")
os.environ.setdefault("PAYMENT_SIGNATURE_SECRET", "whsec_test_signature")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-role-test-key")
os.environ.setdefault("SUPABASE_SCHEMA", "public")
os.environ.setdefault("SUPABASE_ORDERS_TABLE", "orders")
os.environ.setdefault("SUPABASE_PRODUCTS_TABLE", "products")
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Dict, Generator, Iterable, List, Optional
from fastapi.testclient import TestClient

from paybridge.app import app as fastapi_app
from paybridge.config import Settings
from paybridge.orders.errors import GatewayError, StoreError
from paybridge.orders.service import OrderService
from paybridge.orders.views import get_order_service
from paybridge.payments.stripe_client import ProviderOrder

SIGNATURE_SECRET = "whsec_test_signature"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeCatalog:
    """Catalogue en mémoire: {id: {id, name, category, unit_price}}."""

    def __init__(self, products: Optional[Dict[str, Dict[str, Any]]] = None):
        self.products = products or {}
        self.calls: List[List[str]] = []

    def get_products_map(self, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ids = list(ids)
        self.calls.append(ids)
        return {i: self.products[i] for i in ids if i in self.products}


class FakeGateway:
    public_key = "pk_test_bridge"

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.fail_with: Optional[str] = None

    def open_order(self, amount_minor: int, currency: str, idempotency_key: str) -> ProviderOrder:
        self.calls.append({"amount": amount_minor, "currency": currency, "idempotency_key": idempotency_key})
        if self.fail_with:
            raise GatewayError(self.fail_with)
        return ProviderOrder(
            id=f"pi_{len(self.calls)}",
            status="requires_payment_method",
            amount=amount_minor,
            currency=currency,
            receipt=idempotency_key,
        )


class FakeOrders:
    """Table des commandes en mémoire avec la sémantique de mise à jour conditionnelle."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail_create = False
        self.reads = 0
        self.updates: List[Dict[str, Any]] = []
        # Simule un vérificateur concurrent: appliqué juste avant la prochaine mise à jour
        self.before_update = None

    def create(self, draft) -> str:
        if self.fail_create:
            raise StoreError("Failed to save order: connection reset")
        order_id = f"ord_{len(self.rows) + 1}"
        self.rows[order_id] = {"id": order_id, **draft.to_row()}
        return order_id

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        self.reads += 1
        row = self.rows.get(order_id)
        return dict(row) if row else None

    def find_by_provider_order_id(self, provider_order_id: str) -> Optional[Dict[str, Any]]:
        self.reads += 1
        for row in self.rows.values():
            if row.get("provider_order_id") == provider_order_id:
                return dict(row)
        return None

    def update(self, order_id: str, fields: Dict[str, Any], only_if_status: Optional[str] = None):
        if self.before_update:
            hook, self.before_update = self.before_update, None
            hook(self)
        self.updates.append({"id": order_id, "fields": dict(fields), "only_if_status": only_if_status})
        row = self.rows.get(order_id)
        if not row or (only_if_status and row.get("payment_status") != only_if_status):
            return None
        row.update(fields)
        return dict(row)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        stripe_public_key="pk_test_bridge",
        stripe_secret_key="sk_test_bridge",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-role-test-key",
        supabase_schema="public",
        orders_table="orders",
        products_table="products",
        signature_secret=SIGNATURE_SECRET,
    )


@pytest.fixture()
def catalog() -> FakeCatalog:
    return FakeCatalog({
        "p1": {"id": "p1", "name": "T-shirt", "category": "apparel", "unit_price": 49900},
        "p2": {"id": "p2", "name": "Mug", "category": "home", "unit_price": 19900},
        "free": {"id": "free", "name": "Sticker", "category": "goodies", "unit_price": 0},
    })


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def orders() -> FakeOrders:
    return FakeOrders()


@pytest.fixture()
def order_service(settings, catalog, gateway, orders) -> OrderService:
    return OrderService(settings=settings, catalog=catalog, gateway=gateway, orders=orders)


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture()
def client(app, order_service) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_order_service] = lambda: order_service
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_order_service, None)
