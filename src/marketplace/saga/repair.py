"""Repair of sagas left NEEDS_REPAIR by a failed mirror write.

Failed steps are re-applied from their logged payloads through the same
idempotent actions the workflow used, so running a repair twice, or after
the records have converged by other means, changes nothing.
"""

import structlog
from protean.utils.globals import current_domain

# Importing the workflow modules registers their saga actions.
import marketplace.ordering.mirrors  # noqa: F401
import marketplace.payment.reconciliation  # noqa: F401
import marketplace.reporting.recompute  # noqa: F401
from marketplace.saga.saga import OrderSaga, SagaStatus, StepStatus
from marketplace.saga.steps import action_for, save
from marketplace.utils.queries import fetch_all

logger = structlog.get_logger(__name__)


def repair_saga(saga_id: str) -> OrderSaga:
    """Re-apply every FAILED step of one saga and mark it REPAIRED.

    Stops at the first step that fails again; the saga stays NEEDS_REPAIR
    and the error propagates.
    """
    saga = current_domain.repository_for(OrderSaga).get(saga_id)
    if SagaStatus(saga.status) != SagaStatus.NEEDS_REPAIR:
        logger.info("saga_repair_skipped", saga_id=saga_id, status=saga.status)
        return saga

    for step in saga.steps_with(StepStatus.FAILED):
        logger.info("saga_step_reapplying", saga_id=saga_id, action=step.action, target_id=step.target_id)
        action_for(step.action)(**step.arguments)

    saga.repaired()
    save(saga)
    logger.info("saga_repaired", saga_id=saga_id, operation=saga.operation, order_id=str(saga.order_id))
    return saga


def repair_pending_sagas() -> dict:
    """Sweep every NEEDS_REPAIR saga; one failure does not stop the rest."""
    repaired, failed = [], []
    for saga in fetch_all(OrderSaga, status=SagaStatus.NEEDS_REPAIR.value):
        try:
            repair_saga(str(saga.id))
        except Exception as e:
            logger.error("saga_repair_failed", saga_id=str(saga.id), error=str(e))
            failed.append(str(saga.id))
        else:
            repaired.append(str(saga.id))
    return {"repaired": repaired, "failed": failed}
