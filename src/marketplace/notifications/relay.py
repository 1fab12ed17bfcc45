"""Notification relay: records to the outbox, delivers off the request path.

``notify`` is what the workflow calls once its writes have succeeded. It
persists an ``OutboxNotification`` and hands the id to a bounded queue
drained by a single worker thread. Nothing here raises into the caller:
outbox write failures, a full queue and sink failures are all logged, and
undelivered records stay PENDING (or FAILED) for ``dispatch_pending`` and
``retry_failed`` to pick up.
"""

import queue
import threading

import structlog
from protean.utils.globals import current_domain

from marketplace.config import get_settings
from marketplace.notifications.outbox import OutboxNotification, OutboxStatus, TemplateCode
from marketplace.notifications.sink import get_sink
from marketplace.utils.queries import fetch_all, fetch_one

logger = structlog.get_logger(__name__)

_STOP = object()


def dispatch(notification_id: str) -> None:
    """Deliver one PENDING notification through the sink and record the result."""
    repo = current_domain.repository_for(OutboxNotification)
    notification = repo.get(notification_id)

    if OutboxStatus(notification.status) != OutboxStatus.PENDING:
        logger.info(
            "Notification not in PENDING status, skipping dispatch",
            notification_id=str(notification.id),
            status=notification.status,
        )
        return

    try:
        get_sink().notify(str(notification.recipient_id), notification.template_code, notification.data)
    except Exception as e:
        notification.mark_failed(str(e))
        logger.error(
            "Notification dispatch failed",
            notification_id=str(notification.id),
            template_code=notification.template_code,
            error=str(e),
        )
    else:
        notification.mark_sent()

    repo.add(notification)


def dispatch_pending() -> int:
    """Deliver every PENDING notification; returns how many were attempted."""
    pending = sorted(
        fetch_all(OutboxNotification, status=OutboxStatus.PENDING.value),
        key=lambda n: n.created_at,
    )
    for notification in pending:
        dispatch(str(notification.id))
    return len(pending)


def retry_failed() -> int:
    """Move FAILED notifications with attempts left back to PENDING and deliver them."""
    repo = current_domain.repository_for(OutboxNotification)
    retried = 0
    for notification in fetch_all(OutboxNotification, status=OutboxStatus.FAILED.value):
        if (notification.attempts or 0) >= (notification.max_attempts or 0):
            continue
        notification.retry()
        repo.add(notification)
        dispatch(str(notification.id))
        retried += 1
    return retried


class NotificationRelay:
    """Bounded queue plus one worker thread that delivers outbox records."""

    def __init__(self, domain, maxsize: int = 1000) -> None:
        self._domain = domain
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._worker: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._worker = threading.Thread(target=self._run, name="notification-relay", daemon=True)
        self._worker.start()
        logger.info("notification_relay_started")

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        self._queue.put(_STOP)
        self._worker.join(timeout)
        self._worker = None
        logger.info("notification_relay_stopped")

    def submit(self, notification_id: str) -> bool:
        """Queue a notification for delivery; False if it was left for the sweep."""
        if not self.running:
            return False
        try:
            self._queue.put_nowait(notification_id)
        except queue.Full:
            logger.warning("notification_queue_full", notification_id=notification_id)
            return False
        return True

    def _run(self) -> None:
        with self._domain.domain_context():
            while True:
                item = self._queue.get()
                try:
                    if item is _STOP:
                        return
                    dispatch(item)
                except Exception:
                    logger.exception("notification_relay_error", notification_id=item)
                finally:
                    self._queue.task_done()


_relay: NotificationRelay | None = None


def get_relay() -> NotificationRelay:
    global _relay
    if _relay is None:
        from marketplace.domain import marketplace

        _relay = NotificationRelay(marketplace, maxsize=get_settings().notification_queue_size)
    return _relay


def reset_relay() -> None:
    global _relay
    if _relay is not None:
        _relay.stop()
    _relay = None


def notify(
    recipient_id: str,
    template_code: TemplateCode,
    data: dict,
    dedupe_key: str | None = None,
) -> OutboxNotification | None:
    """Record a notification and queue it for delivery. Never raises."""
    try:
        repo = current_domain.repository_for(OutboxNotification)
        if dedupe_key and fetch_one(OutboxNotification, dedupe_key=dedupe_key) is not None:
            logger.info("notification_deduplicated", dedupe_key=dedupe_key)
            return None

        notification = OutboxNotification.record(
            recipient_id=recipient_id,
            template_code=template_code,
            data={key: str(value) for key, value in data.items()},
            dedupe_key=dedupe_key,
        )
        repo.add(notification)
    except Exception as e:
        logger.error(
            "Failed to record notification",
            recipient_id=recipient_id,
            template_code=template_code.value,
            error=str(e),
        )
        return None

    get_relay().submit(str(notification.id))
    return notification
