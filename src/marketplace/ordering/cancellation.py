"""Cancel a PENDING item: removed from the Order, then from its SellerOrder.

Either party may cancel: the buyer who placed the order or the seller whose
store the item belongs to.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.ordering.access import seller_slice
from marketplace.ordering.mirrors import invalidate_order_views
from marketplace.ordering.order import Order
from marketplace.saga import steps
from marketplace.saga.saga import SagaOperation

logger = structlog.get_logger(__name__)


def cancel_item(actor_id: str, order_id: str, product_id: str) -> None:
    order_repo = current_domain.repository_for(Order)
    order = order_repo.get(order_id)
    order.item_for(product_id)
    seller_order = seller_slice(order_id, product_id)

    if str(actor_id) not in (str(order.buyer_id), str(seller_order.seller_id)):
        raise ObjectNotFoundError(f"Order {order_id} does not exist")

    order.remove_item(product_id)

    try:
        order_repo.add(order)
        saga = steps.begin(SagaOperation.CANCEL_ITEM, order_id, product_id=product_id, actor_id=actor_id)
        steps.record(saga, "order.remove_item", order_id, {"product_id": product_id})
        steps.run_step(
            saga,
            "seller_order.remove_item",
            str(seller_order.id),
            {"seller_order_id": str(seller_order.id), "product_id": product_id},
        )
    finally:
        invalidate_order_views(order_id, str(order.buyer_id), [str(seller_order.seller_id)])
    steps.finish(saga)

    logger.info("order_item_cancelled", order_id=order_id, product_id=product_id, actor_id=actor_id)
