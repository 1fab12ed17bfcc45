"""Payment reconciliation: applies the gateway's verdict to every record.

The webhook only tells us which order to look at: its status field is never
trusted, the gateway is queried again. A paid verdict is written to the
Payment record first (authoritative), then the Order's payment mirror, then
every SellerOrder. Each write is a no-op once applied and never moves an
item backwards, so redelivered or out-of-order webhooks are harmless and a
redelivery completes any mirror a previous attempt missed.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.errors import InvalidSignature, PartialUpdateError
from marketplace.gateway import get_gateway
from marketplace.gateway.port import GatewayOutcome
from marketplace.notifications.outbox import TemplateCode
from marketplace.notifications.relay import notify
from marketplace.ordering.mirrors import invalidate_order_views, seller_orders_for
from marketplace.ordering.order import Order
from marketplace.payment.payment import Payment
from marketplace.saga import steps
from marketplace.saga.saga import SagaOperation, SagaStatus, StepStatus

logger = structlog.get_logger(__name__)


@steps.saga_action("payment.confirm")
def confirm_payment_record(order_id: str, method: str | None, transaction_id: str | None) -> bool:
    repo = current_domain.repository_for(Payment)
    payment = repo.get(order_id)
    changed = payment.confirm(method, transaction_id)
    if changed:
        repo.add(payment)
    return changed


def reconcile_payment(order_id: str) -> bool:
    """Re-verify the order's payment with the gateway; True when it is paid."""
    status = get_gateway().query_status(order_id)
    outcome = status.outcome

    if outcome == GatewayOutcome.FRAUD_REVIEW:
        logger.warning("payment_under_fraud_review", order_id=order_id, transaction_id=status.transaction_id)
        return False
    if outcome != GatewayOutcome.PAID:
        logger.info("payment_not_settled", order_id=order_id, transaction_status=status.transaction_status)
        return False

    payment = current_domain.repository_for(Payment).get(order_id)
    order = current_domain.repository_for(Order).get(order_id)
    seller_orders = seller_orders_for(order_id)
    mirror = {"order_id": order_id, "method": status.payment_type, "transaction_id": status.transaction_id}

    try:
        confirm_payment_record(**mirror)
        saga = steps.begin(SagaOperation.RECONCILE_PAYMENT, order_id, actor_id=str(payment.buyer_id))
        steps.record(saga, "payment.confirm", order_id, mirror)

        steps.run_step(saga, "order.confirm_payment", order_id, mirror, raise_on_failure=False)
        for seller_order in seller_orders:
            steps.run_step(
                saga,
                "seller_order.confirm_payment",
                str(seller_order.id),
                {"seller_order_id": str(seller_order.id)},
                raise_on_failure=False,
            )
    finally:
        invalidate_order_views(order_id, str(order.buyer_id), [str(so.seller_id) for so in seller_orders])

    if SagaStatus(saga.status) == SagaStatus.NEEDS_REPAIR:
        failed = saga.steps_with(StepStatus.FAILED)
        raise PartialUpdateError(str(saga.id), failed[0].action, saga.failure_reason or "mirror update failed")
    steps.finish(saga)

    logger.info("payment_reconciled", order_id=order_id, seller_orders=len(seller_orders))
    return True


def handle_payment_notification(payload: dict) -> bool:
    """Webhook entry point: verify, reconcile, then tell the buyer once."""
    if not get_gateway().verify_signature(payload):
        raise InvalidSignature("Invalid notification signature")

    order_id = payload.get("order_id")
    if not order_id:
        raise ValidationError({"order_id": ["Payment notification carries no order id"]})

    paid = reconcile_payment(order_id)
    if paid:
        payment = current_domain.repository_for(Payment).get(order_id)
        notify(
            str(payment.buyer_id),
            TemplateCode.USER_PAYMENT,
            {"order_id": order_id, "payment_type": payment.method or ""},
            dedupe_key=f"{TemplateCode.USER_PAYMENT.value}:{order_id}",
        )
    return paid
