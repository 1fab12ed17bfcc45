"""Payment initiation: opens a hosted payment page for an order.

Idempotent per order: the Payment record is keyed by order id, so a second
request returns the page opened the first time instead of a new session.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.gateway import get_gateway
from marketplace.ordering.access import buyer_order
from marketplace.ordering.mirrors import invalidate_order_views, seller_orders_for
from marketplace.ordering.order import Order
from marketplace.payment.payment import Payment

logger = structlog.get_logger(__name__)


def _existing_payment(order_id: str) -> Payment | None:
    try:
        return current_domain.repository_for(Payment).get(order_id)
    except ObjectNotFoundError:
        return None


def initiate_payment(buyer_id: str, order_id: str) -> Payment:
    order = buyer_order(buyer_id, order_id)

    payment = _existing_payment(order_id)
    if payment is not None:
        if payment.is_successful:
            raise ValidationError({"payment": [f"Order {order_id} is already paid"]})
        logger.info("payment_session_reused", order_id=order_id)
        return payment

    if order.is_paid:
        raise ValidationError({"payment": [f"Order {order_id} is already paid"]})
    amount = order.payable_amount()
    if amount <= 0:
        raise ValidationError({"items": [f"Order {order_id} has no items left to pay for"]})

    session = get_gateway().create_session(order_id, amount)
    payment = Payment.initiate(
        order_id=order_id,
        buyer_id=buyer_id,
        amount=amount,
        session_token=session.token,
        redirect_url=session.redirect_url,
    )
    current_domain.repository_for(Payment).add(payment)

    if order.await_payment():
        current_domain.repository_for(Order).add(order)
        invalidate_order_views(order_id, buyer_id, [str(so.seller_id) for so in seller_orders_for(order_id)])

    logger.info("payment_initiated", order_id=order_id, buyer_id=buyer_id, amount=amount)
    return payment
