"""Buyer confirms receipt: FINISHED on both records, then the store's
sales report is recomputed.

A report that fails to recompute does not fail the finish: the step is left
on the saga for the repair sweep.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.errors import PartialUpdateError
from marketplace.notifications.outbox import TemplateCode
from marketplace.notifications.relay import notify
from marketplace.ordering.access import buyer_order, seller_slice
from marketplace.ordering.mirrors import invalidate_order_views
from marketplace.ordering.order import ItemStatus, Order
from marketplace.reporting import recompute  # noqa: F401  registers sales_report.recompute
from marketplace.saga import steps
from marketplace.saga.saga import SagaOperation

logger = structlog.get_logger(__name__)


def finish_item(buyer_id: str, order_id: str, product_id: str, status: str = ItemStatus.FINISHED.value) -> None:
    """Mark a SHIPPED item as FINISHED."""
    if status != ItemStatus.FINISHED.value:
        raise ValidationError({"status": [f"Buyers can only set status {ItemStatus.FINISHED.value}, got {status}"]})

    order = buyer_order(buyer_id, order_id)
    order.change_item_status(product_id, ItemStatus.FINISHED, expected=ItemStatus.SHIPPED)
    item = order.item_for(product_id)
    seller_order = seller_slice(order_id, product_id)
    report_step = {"store_id": str(seller_order.store_id), "seller_id": str(seller_order.seller_id)}

    try:
        current_domain.repository_for(Order).add(order)
        saga = steps.begin(SagaOperation.FINISH_ITEM, order_id, product_id=product_id, actor_id=buyer_id)
        steps.record(saga, "order.item_status", order_id, {"product_id": product_id, "status": ItemStatus.FINISHED.value})
        try:
            steps.run_step(
                saga,
                "seller_order.mirror_item_status",
                str(seller_order.id),
                {
                    "seller_order_id": str(seller_order.id),
                    "product_id": product_id,
                    "target": ItemStatus.FINISHED.value,
                    "expected": ItemStatus.SHIPPED.value,
                },
            )
        except PartialUpdateError:
            steps.defer(saga, "sales_report.recompute", report_step["store_id"], report_step, "Seller order not finished")
            raise
        steps.run_step(saga, "sales_report.recompute", report_step["store_id"], report_step, raise_on_failure=False)
    finally:
        invalidate_order_views(order_id, buyer_id, [str(seller_order.seller_id)])
    steps.finish(saga)

    notify(
        str(seller_order.seller_id),
        TemplateCode.SELLER_FINISH_ORDER,
        {"order_id": order_id, "product_id": product_id, "product_name": item.product_name},
    )
    logger.info("order_item_finished", order_id=order_id, product_id=product_id, buyer_id=buyer_id)
