from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.inventory.models import Inventory
from modules.inventory.repositories.django_repository import InventoryDjangoRepository
from modules.inventory.services import InventoryService
from modules.orders.dtos import CreateOrderDTO, OrderLineDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService


class RecordingPublisher:
    """Event publisher that keeps published events in memory."""

    def __init__(self):
        self.published = []

    def publish(self, event, topic):
        self.published.append((event, topic))

    @property
    def events(self):
        return [event for event, _ in self.published]

    def of_type(self, event_class):
        return [event for event in self.events if isinstance(event, event_class)]


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user():
    return get_user_model().objects.create_user(
        username="alice", password="testpass123"
    )


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_inventory():
    def _make(product_id, stock, name=None):
        return Inventory.objects.create(
            product_id=product_id,
            product_name=name or f"Product {product_id}",
            available_stock=stock,
        )

    return _make


@pytest.fixture()
def product_a(make_inventory):
    return make_inventory(1, 100, "Laptop")


@pytest.fixture()
def product_b(make_inventory):
    return make_inventory(2, 50, "Mouse")


@pytest.fixture()
def low_stock_product(make_inventory):
    return make_inventory(3, 2, "Monitor")


@pytest.fixture()
def inventory_service():
    return InventoryService(inventory_repository=InventoryDjangoRepository())


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def order_service(inventory_service, publisher):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        inventory_service=inventory_service,
        event_publisher=publisher,
    )


@pytest.fixture()
def order_dto(product_a, product_b):
    return CreateOrderDTO(
        customer_id=42,
        lines=[
            OrderLineDTO(
                product_id=product_a.product_id, quantity=2, unit_price="10.00"
            ),
            OrderLineDTO(
                product_id=product_b.product_id, quantity=1, unit_price="25.50"
            ),
        ],
    )


@pytest.fixture()
def make_order(order_service, product_a):
    """Create an UNPROCESSED order for *quantity* units of product A."""

    def _make(quantity=2, customer_id=42, unit_price=Decimal("10.00")):
        return order_service.create_order(
            CreateOrderDTO(
                customer_id=customer_id,
                lines=[
                    OrderLineDTO(
                        product_id=product_a.product_id,
                        quantity=quantity,
                        unit_price=unit_price,
                    )
                ],
            )
        )

    return _make
