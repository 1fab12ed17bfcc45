"""BDD tests for the multi-seller order lifecycle."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

from marketplace.ordering.cancellation import cancel_item
from marketplace.ordering.completion import finish_item
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.ordering.shipping import ship_item
from marketplace.utils.queries import fetch_all

scenarios("features/order_lifecycle.feature")


def _attempt(error, action, *args):
    try:
        action(*args)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the buyer cancels "{product_id}"'))
def cancel(order_id, product_id, error, snapshot):
    snapshot["order"] = current_domain.repository_for(Order).get(order_id).to_dict()
    snapshot["seller_orders"] = [
        so.to_dict() for so in sorted(fetch_all(SellerOrder, order_id=order_id), key=lambda so: str(so.id))
    ]
    _attempt(error, cancel_item, "buyer-1", order_id, product_id)


@when(parsers.cfparse('seller "{seller_id}" ships "{product_id}"'))
def ship(order_id, seller_id, product_id, error):
    _attempt(error, ship_item, seller_id, order_id, product_id)


@when(parsers.cfparse('the buyer finishes "{product_id}"'))
def finish(order_id, product_id, error):
    _attempt(error, finish_item, "buyer-1", order_id, product_id)
