"""Ownership checks shared by the item-level operations.

An order or seller order that exists but belongs to someone else is
reported exactly like one that does not exist.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.ordering.mirrors import seller_order_holding
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder


def buyer_order(buyer_id: str, order_id: str) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.buyer_id) != str(buyer_id):
        raise ObjectNotFoundError(f"Order {order_id} does not exist")
    return order


def seller_slice(order_id: str, product_id: str) -> SellerOrder:
    """The seller order carrying ``product_id``; missing means the records diverged."""
    seller_order = seller_order_holding(order_id, product_id)
    if seller_order is None:
        raise ObjectNotFoundError(f"No seller order of order {order_id} holds product {product_id}")
    return seller_order


def seller_slice_for(seller_id: str, order_id: str, product_id: str) -> SellerOrder:
    seller_order = seller_order_holding(order_id, product_id)
    if seller_order is None or str(seller_order.seller_id) != str(seller_id):
        raise ObjectNotFoundError(f"Product {product_id} of order {order_id} does not exist")
    return seller_order
