"""Ordering domain events: immutable facts about order and seller order changes.

Orders and seller orders are CQRS aggregates; events are raised alongside the
state change and persisted with the aggregate for audit and downstream
consumers.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A buyer checked out their selected cart items."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    total_price = Float(required=True)
    item_count = Integer(required=True)
    store_ids = Text(required=True)  # JSON list of store ids
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderItemStatusChanged:
    """An item on the buyer's order moved to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderItemRemoved:
    """A pending item was cancelled and removed from the buyer's order."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    removed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderPaymentConfirmed:
    """The order's payment mirror caught up with a successful payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    method = String()
    transaction_id = String()
    processed_items = Integer(required=True)
    confirmed_at = DateTime(required=True)


@marketplace.event(part_of="SellerOrder")
class SellerOrderOpened:
    """A seller-scoped slice of a checkout was created."""

    __version__ = 1

    seller_order_id = Identifier(required=True)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    store_id = Identifier(required=True)
    total_price = Float(required=True)
    opened_at = DateTime(required=True)


@marketplace.event(part_of="SellerOrder")
class SellerOrderItemStatusChanged:
    """An item on a seller order moved to a new status."""

    __version__ = 1

    seller_order_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="SellerOrder")
class SellerOrderItemRemoved:
    """A pending item was cancelled and removed from a seller order."""

    __version__ = 1

    seller_order_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    removed_at = DateTime(required=True)


@marketplace.event(part_of="SellerOrder")
class SellerOrderPaid:
    """The seller order's payment status became SUCCESS."""

    __version__ = 1

    seller_order_id = Identifier(required=True)
    order_id = Identifier(required=True)
    processed_items = Integer(required=True)
    paid_at = DateTime(required=True)
