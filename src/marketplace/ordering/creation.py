"""Order placement: turns a buyer's selected cart lines into an Order and
one SellerOrder per store.

Everything that can be looked up is resolved before the first write: the
buyer's address, each product and the seller owning each store. Only the
writes themselves can then fail, and a failure there is compensated by
deleting whatever was already written, in reverse order.
"""

from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.cache import keys
from marketplace.cache.aside import invalidate
from marketplace.collaborators import get_cart_store, get_catalog, get_directory
from marketplace.errors import ExternalServiceError
from marketplace.notifications.outbox import TemplateCode
from marketplace.notifications.relay import notify
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.saga import steps
from marketplace.saga.saga import OrderSaga, SagaOperation, SagaStatus, StepStatus

logger = structlog.get_logger(__name__)


def _checkout_lines(buyer_id: str) -> list[dict]:
    cart = get_cart_store()
    cart_items = cart.get_cart(buyer_id) if cart.has_cart(buyer_id) else []
    if not cart_items:
        raise ValidationError({"cart": ["Cart is empty"]})

    selected = [item for item in cart_items if item.selected]
    if not selected:
        raise ValidationError({"cart": ["No cart items are selected"]})

    catalog = get_catalog()
    lines = []
    for item in selected:
        product = catalog.get_product(item.product_id)
        lines.append(
            {
                "product_id": item.product_id,
                "product_name": product.name,
                "product_images": list(product.images or item.product_images),
                "store_id": product.store_id,
                "quantity": item.quantity,
                # Price is the one cached in the cart, not the catalog's current price.
                "price": item.price,
            }
        )
    return lines


def _compensate(saga: OrderSaga, written: list[tuple[str, str, dict]], error: Exception) -> None:
    """Undo writes in reverse; undo failures are left FAILED for repair."""
    for action, target_id, payload in reversed(written):
        try:
            steps.action_for(action)(**payload)
        except Exception as e:
            logger.error(
                "Compensation step failed",
                saga_id=str(saga.id),
                action=action,
                target_id=target_id,
                error=str(e),
            )
            saga.record_step(action, target_id=target_id, payload=payload, status=StepStatus.FAILED, error=str(e))
            if SagaStatus(saga.status) == SagaStatus.STARTED:
                saga.needs_repair(f"Compensation of placement failed: {e}")

    if SagaStatus(saga.status) == SagaStatus.STARTED:
        saga.compensated(str(error))
    steps.save(saga)
    logger.warning(
        "Order placement rolled back",
        saga_id=str(saga.id),
        order_id=str(saga.order_id),
        status=saga.status,
        error=str(error),
    )


def place_order(buyer_id: str) -> str:
    """Check out the buyer's selected cart items and return the new order id."""
    lines = _checkout_lines(buyer_id)

    directory = get_directory()
    buyer = directory.find_buyer(buyer_id)
    if not buyer.shipping_address:
        raise ValidationError({"shipping_address": ["Buyer has no shipping address on file"]})

    lines_by_store: dict[str, list[dict]] = {}
    for line in lines:
        lines_by_store.setdefault(line["store_id"], []).append(line)
    sellers = {store_id: directory.find_seller_by_store(store_id) for store_id in lines_by_store}

    order_id = uuid4().hex
    order = Order.place(order_id, buyer_id, buyer.shipping_address, lines)
    seller_orders = [
        SellerOrder.open(
            order_id=order_id,
            seller_id=sellers[store_id].seller_id,
            store_id=store_id,
            buyer_id=buyer_id,
            shipping_address=buyer.shipping_address,
            items_data=store_lines,
        )
        for store_id, store_lines in lines_by_store.items()
    ]

    saga = steps.begin(SagaOperation.PLACE_ORDER, order_id, actor_id=buyer_id)
    written: list[tuple[str, str, dict]] = []
    try:
        current_domain.repository_for(Order).add(order)
        written.append(("order.delete", order_id, {"order_id": order_id}))
        steps.record(saga, "order.create", order_id)

        for seller_order in seller_orders:
            current_domain.repository_for(SellerOrder).add(seller_order)
            written.append(
                ("seller_order.delete", str(seller_order.id), {"seller_order_id": str(seller_order.id)})
            )
            steps.record(saga, "seller_order.create", str(seller_order.id), {"store_id": seller_order.store_id})
    except Exception as e:
        _compensate(saga, written, e)
        raise

    steps.finish(saga)

    invalidate(
        keys.buyer_order_list(buyer_id),
        keys.buyer_order(buyer_id, order_id),
        *[keys.seller_order_list(so.seller_id) for so in seller_orders],
    )

    try:
        get_cart_store().clear_items(buyer_id, [line["product_id"] for line in lines])
    except ExternalServiceError as e:
        logger.warning("cart_clear_failed", buyer_id=buyer_id, order_id=order_id, error=str(e))

    for seller_order in seller_orders:
        notify(
            buyer_id,
            TemplateCode.USER_ORDER,
            {"order_id": order_id, "store_id": seller_order.store_id},
        )
        notify(
            str(seller_order.seller_id),
            TemplateCode.SELLER_ORDER,
            {
                "order_id": order_id,
                "store_id": seller_order.store_id,
                "item_count": len(seller_order.items),
                "total_price": seller_order.total_price,
            },
        )

    logger.info(
        "order_placed",
        order_id=order_id,
        buyer_id=buyer_id,
        total_price=order.total_price,
        seller_orders=len(seller_orders),
    )
    return order_id
