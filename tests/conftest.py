import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from marketplace.domain import marketplace

    marketplace.init()
    marketplace.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db, setup_db

    setup_db(marketplace)

    yield

    drop_db(marketplace)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from marketplace.cache import reset_cache
    from marketplace.collaborators import reset_collaborators
    from marketplace.config import get_settings
    from marketplace.gateway import reset_gateway
    from marketplace.notifications.live import reset_live_registry
    from marketplace.notifications.relay import reset_relay
    from marketplace.notifications.sink import reset_sink

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_relay()
    reset_collaborators()
    reset_gateway()
    reset_cache()
    reset_sink()
    reset_live_registry()
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Shared marketplace fixtures
# ---------------------------------------------------------------------------
ADDRESS = {
    "recipient": "Siti Rahma",
    "phone": "+62 812 0000 0001",
    "street": "Jl. Merdeka 10",
    "city": "Bandung",
    "province": "Jawa Barat",
    "postal_code": "40111",
}


@pytest.fixture()
def sink():
    """Record notifications instead of pushing them to live channels."""
    from marketplace.notifications.sink import set_sink
    from marketplace.notifications.sink.recording import RecordingSink

    recording = RecordingSink()
    set_sink(recording)
    return recording


@pytest.fixture()
def gateway():
    from marketplace.gateway import set_gateway
    from marketplace.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def cache():
    """An in-memory cache that also records the method of every call made on it."""
    from marketplace.cache import set_cache
    from marketplace.cache.memory_adapter import MemoryCache

    class RecordingCache(MemoryCache):
        def __init__(self):
            super().__init__()
            self.methods: list[str] = []

        def _check(self, method, key):
            self.methods.append(method)
            super()._check(method, key)

    memory = RecordingCache()
    set_cache(memory)
    return memory


@pytest.fixture()
def marketplace_data():
    """Two stores with one seller each, three products and one buyer.

    Store A (seller-a) sells p1 and p3, store B (seller-b) sells p2.
    """
    from marketplace.collaborators import get_catalog, get_directory
    from marketplace.collaborators.port import BuyerProfile, Product, SellerProfile
    from marketplace.reporting.queries import open_sales_report

    directory = get_directory()
    directory.add_buyer(BuyerProfile(buyer_id="buyer-1", email="buyer@example.com", name="Buyer", shipping_address=ADDRESS))
    directory.add_buyer(BuyerProfile(buyer_id="buyer-2", email="other@example.com", name="Other", shipping_address=ADDRESS))
    directory.add_seller(SellerProfile(seller_id="seller-a", email="a@example.com", name="Seller A", store_id="store-a"))
    directory.add_seller(SellerProfile(seller_id="seller-b", email="b@example.com", name="Seller B", store_id="store-b"))

    catalog = get_catalog()
    catalog.put(Product(product_id="p1", store_id="store-a", name="Batik Shirt", price=10.0, stock=10, images=("p1.jpg",)))
    catalog.put(Product(product_id="p2", store_id="store-b", name="Coffee Beans", price=5.0, stock=3))
    catalog.put(Product(product_id="p3", store_id="store-a", name="Rattan Bag", price=7.5, stock=20))

    open_sales_report("store-a", "seller-a")
    open_sales_report("store-b", "seller-b")

    return {"directory": directory, "catalog": catalog}


def _fill_cart(buyer_id: str, lines: list[tuple[str, str, float, int]], selected: bool = True) -> None:
    from marketplace.collaborators import get_cart_store
    from marketplace.collaborators.port import CartItem

    get_cart_store().put(
        buyer_id,
        [
            CartItem(
                product_id=product_id,
                store_id=store_id,
                product_name=product_id,
                price=price,
                quantity=quantity,
                selected=selected,
            )
            for product_id, store_id, price, quantity in lines
        ],
    )


@pytest.fixture()
def fill_cart():
    """Put ``(product_id, store_id, price, quantity)`` lines in a buyer's cart."""
    return _fill_cart


STANDARD_CART = [("p1", "store-a", 10.0, 2), ("p2", "store-b", 5.0, 1)]


@pytest.fixture()
def placed_order(marketplace_data, sink):
    """An order for p1 x2 (store A) and p2 x1 (store B), not yet paid."""
    from marketplace.ordering.creation import place_order

    _fill_cart("buyer-1", STANDARD_CART)
    return place_order("buyer-1")


@pytest.fixture()
def paid_order(placed_order, gateway):
    """The placed order, paid and reconciled."""
    from marketplace.payment.initiation import initiate_payment
    from marketplace.payment.reconciliation import reconcile_payment

    initiate_payment("buyer-1", placed_order)
    gateway.set_status(placed_order, "settlement")
    reconcile_payment(placed_order)
    return placed_order


@pytest.fixture(scope="session")
def marketplace_bed():
    from protean.integrations.pytest import DomainFixture

    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield
