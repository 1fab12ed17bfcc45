import pytest
from protean.exceptions import ValidationError

from marketplace.notifications.outbox import OutboxNotification, OutboxStatus, TemplateCode


def _notification(**kwargs):
    return OutboxNotification.record(
        recipient_id="buyer-1",
        template_code=TemplateCode.USER_ORDER,
        data={"order_id": "ord-1", "store_id": "store-a"},
        **kwargs,
    )


class TestOutboxNotification:
    def test_recorded_pending(self):
        notification = _notification(dedupe_key="USER_ORDER:ord-1")
        assert notification.status == OutboxStatus.PENDING.value
        assert notification.attempts == 0
        assert notification.data == {"order_id": "ord-1", "store_id": "store-a"}
        assert notification.dedupe_key == "USER_ORDER:ord-1"

    def test_mark_sent(self):
        notification = _notification()
        notification.mark_sent()
        assert notification.status == OutboxStatus.SENT.value
        assert notification.attempts == 1
        assert notification.sent_at is not None

    def test_sent_is_terminal(self):
        notification = _notification()
        notification.mark_sent()
        with pytest.raises(ValidationError) as exc_info:
            notification.mark_failed("late failure")
        assert "Cannot transition from SENT to FAILED" in str(exc_info.value.messages)

    def test_failure_then_retry(self):
        notification = _notification()
        notification.mark_failed("sink down")
        assert notification.status == OutboxStatus.FAILED.value
        assert notification.failure_reason == "sink down"

        notification.retry()
        assert notification.status == OutboxStatus.PENDING.value
        assert notification.failure_reason is None

    def test_retry_stops_at_max_attempts(self):
        notification = _notification()
        for _ in range(3):
            notification.mark_failed("sink down")
            if notification.attempts < 3:
                notification.retry()

        with pytest.raises(ValidationError) as exc_info:
            notification.retry()
        assert "attempts" in exc_info.value.messages

    def test_failure_reason_truncated(self):
        notification = _notification()
        notification.mark_failed("x" * 600)
        assert len(notification.failure_reason) == 500
