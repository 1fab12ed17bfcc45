"""Shared BDD fixtures and step definitions for payment reconciliation."""

from protean import current_domain
from pytest_bdd import given, parsers, then

from marketplace.collaborators import get_cart_store
from marketplace.collaborators.port import CartItem
from marketplace.notifications.outbox import OutboxNotification, TemplateCode
from marketplace.ordering.creation import place_order
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.payment.initiation import initiate_payment
from marketplace.payment.payment import Payment
from marketplace.utils.queries import fetch_all


@given("a buyer with an order across stores A and B", target_fixture="order_id")
def _order(marketplace_data, sink):
    get_cart_store().put(
        "buyer-1",
        [
            CartItem(product_id="p1", store_id="store-a", product_name="p1", price=10.0, quantity=2, selected=True),
            CartItem(product_id="p2", store_id="store-b", product_name="p2", price=5.0, quantity=1, selected=True),
        ],
    )
    return place_order("buyer-1")


@given("the buyer opened the payment page")
def _opened(order_id, gateway):
    initiate_payment("buyer-1", order_id)


@given(parsers.cfparse('the gateway reports "{transaction_status:w}"'))
def _reports(order_id, gateway, transaction_status):
    gateway.set_status(order_id, transaction_status)


@given(parsers.cfparse('the gateway reports "{transaction_status:w}" with fraud status "{fraud_status:w}"'))
def _reports_with_fraud(order_id, gateway, transaction_status, fraud_status):
    gateway.set_status(order_id, transaction_status, fraud_status=fraud_status)


@then(parsers.cfparse('the payment record is "{status}"'))
def _payment_record(order_id, status):
    assert current_domain.repository_for(Payment).get(order_id).status == status


@then(parsers.cfparse('the order payment is "{status}"'))
def _order_payment(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).payment.status == status


@then(parsers.cfparse('every order item is "{status}"'))
def _order_items(order_id, status):
    order = current_domain.repository_for(Order).get(order_id)
    assert {item.status for item in order.items} == {status}


@then(parsers.cfparse('every seller order payment is "{status}"'))
def _seller_order_payments(order_id, status):
    assert {so.payment_status for so in fetch_all(SellerOrder, order_id=order_id)} == {status}


@then(parsers.cfparse("the buyer has {count:d} payment notification"))
@then(parsers.cfparse("the buyer has {count:d} payment notifications"))
def _payment_notifications(count):
    notifications = fetch_all(
        OutboxNotification,
        recipient_id="buyer-1",
        template_code=TemplateCode.USER_PAYMENT.value,
    )
    assert len(notifications) == count
