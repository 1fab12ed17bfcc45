"""Order aggregate (CQRS): the buyer-facing record of one checkout.

An Order spans every store touched by the checkout. It is the authoritative
record of item existence and item status; each SellerOrder mirrors the slice
of items belonging to its store.

Item State Machine:
    PENDING → PROCESSED → SHIPPED → FINISHED
    PENDING → CANCELLED (the item is then removed from both records)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.ordering.events import (
    OrderItemRemoved,
    OrderItemStatusChanged,
    OrderPaymentConfirmed,
    OrderPlaced,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ItemStatus(Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    SHIPPED = "SHIPPED"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    UNPAID = "UNPAID"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"


_VALID_TRANSITIONS = {
    ItemStatus.PENDING: {ItemStatus.PROCESSED, ItemStatus.CANCELLED},
    ItemStatus.PROCESSED: {ItemStatus.SHIPPED},
    ItemStatus.SHIPPED: {ItemStatus.FINISHED},
    ItemStatus.FINISHED: set(),  # terminal
    ItemStatus.CANCELLED: set(),  # terminal
}

if set(_VALID_TRANSITIONS) != set(ItemStatus):
    raise TypeError(
        "Item transition table is not exhaustive: missing "
        f"{sorted(s.value for s in set(ItemStatus) - set(_VALID_TRANSITIONS))}"
    )


def allowed_transitions(status: ItemStatus) -> set[ItemStatus]:
    return set(_VALID_TRANSITIONS[status])


def guard_item_transition(
    product_id: str,
    current: str,
    target: ItemStatus,
    expected: ItemStatus | None = None,
) -> ItemStatus:
    """Check a conditional item write and return the current status.

    ``expected`` is the status the caller read before deciding to write.
    A mismatch means the item moved underneath the caller, and the error
    names both states.
    """
    current_status = ItemStatus(current)
    if expected is not None and current_status != expected:
        raise ValidationError(
            {"status": [f"Item {product_id} is expected to be {expected.value} but is {current_status.value}"]}
        )
    if target not in _VALID_TRANSITIONS[current_status]:
        raise ValidationError(
            {"status": [f"Cannot transition item {product_id} from {current_status.value} to {target.value}"]}
        )
    return current_status


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object
class ShippingAddress:
    """Snapshot of the buyer's shipping address taken at checkout."""

    recipient = String(required=True, max_length=200)
    phone = String(max_length=50)
    street = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    province = String(max_length=100)
    postal_code = String(max_length=20)


@marketplace.value_object(part_of="Order")
class PaymentInfo:
    """Denormalized mirror of the order's Payment record."""

    method = String(max_length=50)
    status = String(
        max_length=20,
        choices=PaymentStatus,
        default=PaymentStatus.UNPAID.value,
    )
    transaction_id = String(max_length=255)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """One product line on the buyer's order, priced at checkout time."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_images = List(content_type=String)
    store_id = Identifier(required=True)
    status = String(
        max_length=20,
        choices=ItemStatus,
        default=ItemStatus.PENDING.value,
    )
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    total_price = Float(required=True, min_value=0.0)
    shipping_address = ValueObject(ShippingAddress)
    payment = ValueObject(PaymentInfo)
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_id: str,
        buyer_id: str,
        shipping_address: dict,
        items_data: list[dict],
    ) -> "Order":
        """Create an order from checked-out cart lines, all PENDING."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_id=order_id,
            buyer_id=buyer_id,
            total_price=sum(data["price"] * data["quantity"] for data in items_data),
            shipping_address=ShippingAddress(**shipping_address),
            payment=PaymentInfo(status=PaymentStatus.UNPAID.value),
            created_at=now,
            updated_at=now,
        )
        for data in items_data:
            order.add_items(
                OrderItem(
                    product_id=data["product_id"],
                    product_name=data["product_name"],
                    product_images=list(data.get("product_images") or []),
                    store_id=data["store_id"],
                    quantity=data["quantity"],
                    price=data["price"],
                    status=ItemStatus.PENDING.value,
                )
            )
        order.raise_(
            OrderPlaced(
                order_id=order_id,
                buyer_id=buyer_id,
                total_price=order.total_price,
                item_count=len(items_data),
                store_ids=json.dumps(order.store_ids()),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def item_for(self, product_id: str) -> OrderItem:
        item = next((i for i in (self.items or []) if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Product {product_id} is not part of order {self.order_id}")
        return item

    def store_ids(self) -> list[str]:
        """Distinct store ids in first-seen item order."""
        seen: list[str] = []
        for item in self.items or []:
            if str(item.store_id) not in seen:
                seen.append(str(item.store_id))
        return seen

    def payable_amount(self) -> float:
        """Sum of the items still on the order (cancelled items are gone)."""
        return sum(item.line_total for item in self.items or [])

    @property
    def is_paid(self) -> bool:
        return self.payment is not None and self.payment.status == PaymentStatus.SUCCESS.value

    # -------------------------------------------------------------------
    # Item status
    # -------------------------------------------------------------------
    def change_item_status(
        self,
        product_id: str,
        target: ItemStatus,
        expected: ItemStatus,
    ) -> None:
        """Move one item from ``expected`` to ``target`` or refuse."""
        item = self.item_for(product_id)
        previous = guard_item_transition(product_id, item.status, target, expected)

        now = datetime.now(UTC)
        item.status = target.value
        self.updated_at = now
        self.raise_(
            OrderItemStatusChanged(
                order_id=self.order_id,
                product_id=product_id,
                previous_status=previous.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    def remove_item(self, product_id: str) -> OrderItem:
        """Cancel a PENDING item by removing it from the order."""
        item = self.item_for(product_id)
        guard_item_transition(product_id, item.status, ItemStatus.CANCELLED, ItemStatus.PENDING)

        now = datetime.now(UTC)
        self.remove_items(item)
        self.updated_at = now
        self.raise_(
            OrderItemRemoved(
                order_id=self.order_id,
                product_id=product_id,
                removed_at=now,
            )
        )
        return item

    # -------------------------------------------------------------------
    # Payment mirror
    # -------------------------------------------------------------------
    def await_payment(self) -> bool:
        """Mark an UNPAID order as waiting on the gateway; False otherwise."""
        if self.payment is not None and self.payment.status != PaymentStatus.UNPAID.value:
            return False
        self.payment = PaymentInfo(status=PaymentStatus.PENDING.value)
        self.updated_at = datetime.now(UTC)
        return True

    def confirm_payment(self, method: str | None, transaction_id: str | None) -> bool:
        """Mirror a successful payment onto the order.

        Marks the payment SUCCESS and moves every PENDING item to PROCESSED.
        Items already further along are left alone, so applying this twice,
        or after a later transition, never regresses anything. Returns
        whether anything changed.
        """
        pending = [i for i in (self.items or []) if i.status == ItemStatus.PENDING.value]
        if self.is_paid and not pending:
            return False

        now = datetime.now(UTC)
        if not self.is_paid:
            self.payment = PaymentInfo(
                method=method,
                status=PaymentStatus.SUCCESS.value,
                transaction_id=transaction_id,
            )
        for item in pending:
            item.status = ItemStatus.PROCESSED.value
        self.updated_at = now
        self.raise_(
            OrderPaymentConfirmed(
                order_id=self.order_id,
                method=self.payment.method,
                transaction_id=self.payment.transaction_id,
                processed_items=len(pending),
                confirmed_at=now,
            )
        )
        return True
