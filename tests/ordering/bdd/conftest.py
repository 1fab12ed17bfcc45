"""Shared BDD fixtures and step definitions for the order workflow."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from marketplace.collaborators import get_cart_store
from marketplace.collaborators.port import CartItem
from marketplace.ordering.creation import place_order
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.payment.initiation import initiate_payment
from marketplace.payment.reconciliation import reconcile_payment
from marketplace.utils.queries import fetch_all


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def snapshot():
    """Records as they were before the step under test."""
    return {}


def _seller_order_for(order_id, store_id):
    return next(so for so in fetch_all(SellerOrder, order_id=order_id) if str(so.store_id) == store_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a marketplace with stores A and B")
def _marketplace(marketplace_data, sink, gateway):
    pass


@given(parsers.cfparse('the buyer selected {quantity:d} of "{product_id}" at {price:f} from store {store}'))
def _selected(quantity, product_id, price, store):
    cart = get_cart_store()
    existing = cart.get_cart("buyer-1") if cart.has_cart("buyer-1") else []
    cart.put(
        "buyer-1",
        existing
        + [
            CartItem(
                product_id=product_id,
                store_id=f"store-{store.lower()}",
                product_name=product_id,
                price=price,
                quantity=quantity,
                selected=True,
            )
        ],
    )


@given("the buyer placed the order", target_fixture="order_id")
def _placed():
    return place_order("buyer-1")


@given("the order was paid", target_fixture="order_id")
def _paid(order_id, gateway):
    initiate_payment("buyer-1", order_id)
    gateway.set_status(order_id, "settlement")
    reconcile_payment(order_id)
    return order_id


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total:f}"))
def _order_total(order_id, total):
    assert current_domain.repository_for(Order).get(order_id).total_price == total


@then(parsers.cfparse("there are {count:d} seller orders"))
def _seller_order_count(order_id, count):
    assert len(fetch_all(SellerOrder, order_id=order_id)) == count


@then(parsers.cfparse("the seller order of store {store} totals {total:f}"))
def _seller_order_total(order_id, store, total):
    assert _seller_order_for(order_id, f"store-{store.lower()}").total_price == total


@then(parsers.cfparse('every order item is "{status}"'))
def _order_items(order_id, status):
    order = current_domain.repository_for(Order).get(order_id)
    assert {item.status for item in order.items} == {status}


@then(parsers.cfparse('every seller order item is "{status}"'))
def _seller_order_items(order_id, status):
    statuses = {item.status for so in fetch_all(SellerOrder, order_id=order_id) for item in so.items}
    assert statuses == {status}


@then(parsers.cfparse('every seller order payment is "{status}"'))
def _seller_order_payments(order_id, status):
    assert {so.payment_status for so in fetch_all(SellerOrder, order_id=order_id)} == {status}


@then("the action fails with a validation error")
def _validation_error(error):
    assert isinstance(error["exc"], ValidationError)


@then("no order record was changed")
def _unchanged(order_id, snapshot):
    order = current_domain.repository_for(Order).get(order_id)
    seller_orders = sorted(fetch_all(SellerOrder, order_id=order_id), key=lambda so: str(so.id))
    assert order.to_dict() == snapshot["order"]
    assert [so.to_dict() for so in seller_orders] == snapshot["seller_orders"]
