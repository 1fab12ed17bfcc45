"""Application tests for order placement and multi-seller fan-out."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.collaborators import get_cart_store, get_catalog, get_directory
from marketplace.collaborators.port import BuyerProfile, CartItem, Product
from marketplace.errors import CollaboratorUnavailable
from marketplace.notifications.outbox import OutboxNotification
from marketplace.ordering.creation import place_order
from marketplace.ordering.order import ItemStatus, Order, PaymentStatus
from marketplace.ordering.seller_order import SellerOrder
from marketplace.saga.saga import OrderSaga, SagaOperation, SagaStatus
from marketplace.utils.queries import fetch_all


@pytest.fixture(autouse=True)
def _data(marketplace_data, sink):
    yield


def _seller_orders(order_id):
    return {str(so.store_id): so for so in fetch_all(SellerOrder, order_id=order_id)}


class TestPlaceOrder:
    def test_order_total_and_items(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 2), ("p2", "store-b", 5.0, 1)])
        order_id = place_order("buyer-1")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.total_price == 25.0
        assert str(order.buyer_id) == "buyer-1"
        assert {i.status for i in order.items} == {ItemStatus.PENDING.value}
        assert order.payment.status == PaymentStatus.UNPAID.value

    def test_one_seller_order_per_store(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 2), ("p2", "store-b", 5.0, 1)])
        order_id = place_order("buyer-1")

        seller_orders = _seller_orders(order_id)
        assert set(seller_orders) == {"store-a", "store-b"}
        assert seller_orders["store-a"].total_price == 20.0
        assert seller_orders["store-b"].total_price == 5.0
        assert str(seller_orders["store-a"].seller_id) == "seller-a"
        assert str(seller_orders["store-b"].seller_id) == "seller-b"

    def test_seller_order_totals_add_up_to_order_total(self, fill_cart):
        fill_cart(
            "buyer-1",
            [("p1", "store-a", 10.0, 2), ("p3", "store-a", 7.5, 2), ("p2", "store-b", 5.0, 3)],
        )
        order_id = place_order("buyer-1")

        order = current_domain.repository_for(Order).get(order_id)
        seller_orders = _seller_orders(order_id)
        assert sum(so.total_price for so in seller_orders.values()) == order.total_price == 50.0
        assert len(seller_orders["store-a"].items) == 2

    def test_item_ids_match_across_records(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 2), ("p2", "store-b", 5.0, 1)])
        order_id = place_order("buyer-1")

        order = current_domain.repository_for(Order).get(order_id)
        mirrored = sorted(str(i.product_id) for so in _seller_orders(order_id).values() for i in so.items)
        assert sorted(str(i.product_id) for i in order.items) == mirrored

    def test_cart_price_is_kept(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 9.0, 1)])
        order_id = place_order("buyer-1")
        assert current_domain.repository_for(Order).get(order_id).item_for("p1").price == 9.0

    def test_catalog_name_and_images_are_used(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)])
        order_id = place_order("buyer-1")
        item = current_domain.repository_for(Order).get(order_id).item_for("p1")
        assert item.product_name == "Batik Shirt"
        assert item.product_images == ["p1.jpg"]

    def test_only_selected_items_are_ordered_and_cleared(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)])
        cart = get_cart_store()
        cart.put(
            "buyer-1",
            cart.get_cart("buyer-1")
            + [CartItem(product_id="p2", store_id="store-b", product_name="p2", price=5.0, quantity=1)],
        )

        order_id = place_order("buyer-1")

        order = current_domain.repository_for(Order).get(order_id)
        assert [str(i.product_id) for i in order.items] == ["p1"]
        assert [i.product_id for i in cart.get_cart("buyer-1")] == ["p2"]

    def test_saga_is_completed(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)])
        order_id = place_order("buyer-1")

        sagas = fetch_all(OrderSaga, order_id=order_id)
        assert len(sagas) == 1
        assert sagas[0].operation == SagaOperation.PLACE_ORDER.value
        assert sagas[0].status == SagaStatus.COMPLETED.value

    def test_notifications_are_recorded(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 2), ("p2", "store-b", 5.0, 1)])
        place_order("buyer-1")

        codes = sorted((str(n.recipient_id), n.template_code) for n in fetch_all(OutboxNotification))
        assert codes == [
            ("buyer-1", "USER_ORDER"),
            ("buyer-1", "USER_ORDER"),
            ("seller-a", "SELLER_ORDER"),
            ("seller-b", "SELLER_ORDER"),
        ]


class TestPlaceOrderRejections:
    def test_missing_cart(self):
        with pytest.raises(ValidationError) as exc_info:
            place_order("buyer-1")
        assert "cart" in exc_info.value.messages

    def test_no_selected_items(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)], selected=False)
        with pytest.raises(ValidationError) as exc_info:
            place_order("buyer-1")
        assert "cart" in exc_info.value.messages
        assert fetch_all(Order) == []

    def test_buyer_without_address(self, fill_cart):
        get_directory().add_buyer(BuyerProfile(buyer_id="buyer-3", email="no@example.com", name="No Address"))
        fill_cart("buyer-3", [("p1", "store-a", 10.0, 1)])
        with pytest.raises(ValidationError) as exc_info:
            place_order("buyer-3")
        assert "shipping_address" in exc_info.value.messages

    def test_unknown_seller_writes_nothing(self, fill_cart):
        get_catalog().put(Product(product_id="p9", store_id="store-x", name="Orphan", price=1.0, stock=1))
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1), ("p9", "store-x", 1.0, 1)])

        with pytest.raises(ObjectNotFoundError):
            place_order("buyer-1")

        assert fetch_all(Order) == []
        assert fetch_all(SellerOrder) == []

    def test_catalog_unavailable_writes_nothing(self, fill_cart):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)])
        get_catalog().configure(unavailable=True)

        with pytest.raises(CollaboratorUnavailable):
            place_order("buyer-1")

        assert fetch_all(Order) == []

    def test_cart_clear_failure_does_not_fail_the_order(self, fill_cart, monkeypatch):
        fill_cart("buyer-1", [("p1", "store-a", 10.0, 1)])
        def _failing_clear(buyer_id, product_ids):
            raise CollaboratorUnavailable("InMemoryCart", "clear_items failed")

        monkeypatch.setattr(get_cart_store(), "clear_items", _failing_clear)

        order_id = place_order("buyer-1")

        assert current_domain.repository_for(Order).get(order_id) is not None
