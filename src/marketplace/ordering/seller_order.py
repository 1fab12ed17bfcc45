"""SellerOrder aggregate (CQRS): one store's slice of a checkout.

A checkout touching N stores produces N seller orders that share the buyer
order's ``order_id``. Item status here mirrors the buyer Order, which stays
authoritative: mirror writes accept an item that already reached the target
status so they can be re-applied safely.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
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
    SellerOrderItemRemoved,
    SellerOrderItemStatusChanged,
    SellerOrderOpened,
    SellerOrderPaid,
)
from marketplace.ordering.order import (
    ItemStatus,
    PaymentStatus,
    ShippingAddress,
    guard_item_transition,
)


@marketplace.entity(part_of="SellerOrder")
class SellerOrderItem:
    """One product line on a seller order."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_images = List(content_type=String)
    status = String(
        max_length=20,
        choices=ItemStatus,
        default=ItemStatus.PENDING.value,
    )
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)


@marketplace.aggregate
class SellerOrder:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    store_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    total_price = Float(required=True, min_value=0.0)
    payment_status = String(
        max_length=20,
        choices=PaymentStatus,
        default=PaymentStatus.UNPAID.value,
    )
    shipping_address = ValueObject(ShippingAddress)
    items = HasMany(SellerOrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        order_id: str,
        seller_id: str,
        store_id: str,
        buyer_id: str,
        shipping_address: dict,
        items_data: list[dict],
    ) -> "SellerOrder":
        """Create the seller's slice of a new order; every item PENDING, UNPAID."""
        now = datetime.now(UTC)
        seller_order = cls(
            order_id=order_id,
            seller_id=seller_id,
            store_id=store_id,
            buyer_id=buyer_id,
            total_price=sum(data["price"] * data["quantity"] for data in items_data),
            payment_status=PaymentStatus.UNPAID.value,
            shipping_address=ShippingAddress(**shipping_address),
            created_at=now,
            updated_at=now,
        )
        for data in items_data:
            seller_order.add_items(
                SellerOrderItem(
                    product_id=data["product_id"],
                    product_name=data["product_name"],
                    product_images=list(data.get("product_images") or []),
                    quantity=data["quantity"],
                    price=data["price"],
                    status=ItemStatus.PENDING.value,
                )
            )
        seller_order.raise_(
            SellerOrderOpened(
                seller_order_id=str(seller_order.id),
                order_id=order_id,
                seller_id=seller_id,
                store_id=store_id,
                total_price=seller_order.total_price,
                opened_at=now,
            )
        )
        return seller_order

    def item_for(self, product_id: str) -> SellerOrderItem:
        item = next((i for i in (self.items or []) if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Product {product_id} is not part of seller order {self.id}")
        return item

    def has_item(self, product_id: str) -> bool:
        return any(str(i.product_id) == str(product_id) for i in self.items or [])

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.SUCCESS.value

    def mirror_item_status(
        self,
        product_id: str,
        target: ItemStatus,
        expected: ItemStatus,
    ) -> bool:
        """Bring the mirrored item to ``target``; False if it is already there."""
        item = self.item_for(product_id)
        if item.status == target.value:
            return False
        previous = guard_item_transition(product_id, item.status, target, expected)

        now = datetime.now(UTC)
        item.status = target.value
        self.updated_at = now
        self.raise_(
            SellerOrderItemStatusChanged(
                seller_order_id=str(self.id),
                order_id=self.order_id,
                product_id=product_id,
                previous_status=previous.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    def remove_item(self, product_id: str) -> bool:
        """Remove a PENDING item; False if it was already removed."""
        if not self.has_item(product_id):
            return False
        item = self.item_for(product_id)
        guard_item_transition(product_id, item.status, ItemStatus.CANCELLED, ItemStatus.PENDING)

        now = datetime.now(UTC)
        self.remove_items(item)
        self.updated_at = now
        self.raise_(
            SellerOrderItemRemoved(
                seller_order_id=str(self.id),
                order_id=self.order_id,
                product_id=product_id,
                removed_at=now,
            )
        )
        return True

    def confirm_payment(self) -> bool:
        """Mark the slice paid and move PENDING items to PROCESSED.

        Never regresses an item that is already past PENDING. Returns whether
        anything changed.
        """
        pending = [i for i in (self.items or []) if i.status == ItemStatus.PENDING.value]
        if self.is_paid and not pending:
            return False

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.SUCCESS.value
        for item in pending:
            item.status = ItemStatus.PROCESSED.value
        self.updated_at = now
        self.raise_(
            SellerOrderPaid(
                seller_order_id=str(self.id),
                order_id=self.order_id,
                processed_items=len(pending),
                paid_at=now,
            )
        )
        return True
