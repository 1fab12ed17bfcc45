"""Seller ships an item: SHIPPED on both records, then stock is taken."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.collaborators import get_catalog
from marketplace.config import get_settings
from marketplace.errors import ExternalServiceError, PartialUpdateError
from marketplace.notifications.outbox import TemplateCode
from marketplace.notifications.relay import notify
from marketplace.ordering.access import seller_slice_for
from marketplace.ordering.mirrors import invalidate_order_views
from marketplace.ordering.order import ItemStatus, Order
from marketplace.saga import steps
from marketplace.saga.saga import SagaOperation

logger = structlog.get_logger(__name__)


def ship_item(seller_id: str, order_id: str, product_id: str, status: str = ItemStatus.SHIPPED.value) -> None:
    """Mark a paid, PROCESSED item as SHIPPED and decrement the product's stock."""
    if status != ItemStatus.SHIPPED.value:
        raise ValidationError({"status": [f"Sellers can only set status {ItemStatus.SHIPPED.value}, got {status}"]})

    seller_order = seller_slice_for(seller_id, order_id, product_id)
    if not seller_order.is_paid:
        raise ValidationError(
            {"payment_status": [f"Seller order is expected to be SUCCESS but is {seller_order.payment_status}"]}
        )

    order_repo = current_domain.repository_for(Order)
    order = order_repo.get(order_id)
    order.change_item_status(product_id, ItemStatus.SHIPPED, expected=ItemStatus.PROCESSED)
    item = order.item_for(product_id)
    stock_step = {"store_id": str(seller_order.store_id), "product_id": product_id, "quantity": item.quantity}

    try:
        order_repo.add(order)
        saga = steps.begin(SagaOperation.SHIP_ITEM, order_id, product_id=product_id, actor_id=seller_id)
        steps.record(saga, "order.item_status", order_id, {"product_id": product_id, "status": ItemStatus.SHIPPED.value})
        try:
            steps.run_step(
                saga,
                "seller_order.mirror_item_status",
                str(seller_order.id),
                {
                    "seller_order_id": str(seller_order.id),
                    "product_id": product_id,
                    "target": ItemStatus.SHIPPED.value,
                    "expected": ItemStatus.PROCESSED.value,
                },
            )
        except PartialUpdateError:
            steps.defer(saga, "catalog.decrement_stock", product_id, stock_step, "Seller order not shipped")
            raise
        modified = steps.run_step(saga, "catalog.decrement_stock", product_id, stock_step, retry=False)
    finally:
        invalidate_order_views(order_id, str(order.buyer_id), [str(seller_order.seller_id)])
    steps.finish(saga)

    if not modified:
        logger.warning("stock_not_decremented", store_id=str(seller_order.store_id), product_id=product_id)

    notify(
        str(order.buyer_id),
        TemplateCode.USER_PRODUCT_SHIPPED,
        {"order_id": order_id, "product_id": product_id, "product_name": item.product_name},
    )
    _alert_low_stock(seller_id, product_id)

    logger.info("order_item_shipped", order_id=order_id, product_id=product_id, seller_id=seller_id)


def _alert_low_stock(seller_id: str, product_id: str) -> None:
    try:
        product = get_catalog().get_product(product_id)
    except (ExternalServiceError, ObjectNotFoundError) as e:
        logger.warning("low_stock_check_skipped", product_id=product_id, error=str(e))
        return

    if product.stock <= get_settings().low_stock_threshold:
        notify(
            seller_id,
            TemplateCode.SELLER_LESS_STOCK,
            {"product_id": product_id, "product_name": product.name, "stock": product.stock},
        )
