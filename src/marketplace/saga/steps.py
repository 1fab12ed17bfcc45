"""Running saga steps: persisted, retried once, recorded for repair.

Mirror writes register themselves here by name with ``@saga_action`` so a
failed step can be re-applied later from nothing but its logged payload.
Every registered action must be idempotent.
"""

from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.errors import PartialUpdateError
from marketplace.saga.saga import OrderSaga, SagaOperation, SagaStatus, StepStatus

logger = structlog.get_logger(__name__)

_ACTIONS: dict[str, Callable[..., object]] = {}


def saga_action(name: str):
    """Register an idempotent write under ``name``."""

    def decorator(func):
        _ACTIONS[name] = func
        return func

    return decorator


def action_for(name: str) -> Callable[..., object]:
    try:
        return _ACTIONS[name]
    except KeyError:
        raise ValidationError({"action": [f"No saga action registered as {name}"]}) from None


def save(saga: OrderSaga) -> None:
    current_domain.repository_for(OrderSaga).add(saga)


def begin(
    operation: SagaOperation,
    order_id: str,
    product_id: str | None = None,
    actor_id: str | None = None,
) -> OrderSaga:
    saga = OrderSaga.begin(operation, order_id, product_id=product_id, actor_id=actor_id)
    save(saga)
    return saga


def record(saga: OrderSaga, action: str, target_id: str | None = None, payload: dict | None = None) -> None:
    """Log a step the caller already performed."""
    saga.record_step(action, target_id=target_id, payload=payload)
    save(saga)


def run_step(
    saga: OrderSaga,
    action: str,
    target_id: str | None,
    payload: dict,
    *,
    retry: bool = True,
    raise_on_failure: bool = True,
):
    """Apply a registered action, retrying once, and log the outcome.

    When the last attempt fails the step is logged FAILED, the saga is marked
    NEEDS_REPAIR and ``PartialUpdateError`` is raised (unless
    ``raise_on_failure`` is off, in which case None is returned). Writes that
    already succeeded are left in place.
    """
    apply = action_for(action)
    attempts = 2 if retry else 1
    error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            result = apply(**payload)
        except Exception as e:
            error = e
            logger.warning(
                "saga_step_attempt_failed",
                saga_id=str(saga.id),
                action=action,
                target_id=target_id,
                attempt=attempt,
                error=str(e),
            )
            continue
        record(saga, action, target_id=target_id, payload=payload)
        return result

    saga.record_step(action, target_id=target_id, payload=payload, status=StepStatus.FAILED, error=str(error))
    if SagaStatus(saga.status) == SagaStatus.STARTED:
        saga.needs_repair(f"{action} on {target_id} failed: {error}")
    save(saga)

    logger.error(
        "Inconsistent records after partial update",
        saga_id=str(saga.id),
        operation=saga.operation,
        order_id=str(saga.order_id),
        action=action,
        target_id=target_id,
        error=str(error),
    )
    if raise_on_failure:
        raise PartialUpdateError(str(saga.id), action, str(error)) from error
    return None


def finish(saga: OrderSaga) -> None:
    """Mark the saga COMPLETED unless a step already left it for repair."""
    if SagaStatus(saga.status) == SagaStatus.STARTED:
        saga.complete()
        save(saga)


def defer(saga: OrderSaga, action: str, target_id: str | None, payload: dict, reason: str) -> None:
    """Log a step that was not attempted so the repair sweep applies it."""
    saga.record_step(action, target_id=target_id, payload=payload, status=StepStatus.FAILED, error=reason)
    if SagaStatus(saga.status) == SagaStatus.STARTED:
        saga.needs_repair(reason)
    save(saga)
