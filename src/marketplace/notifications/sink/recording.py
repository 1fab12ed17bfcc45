"""Recording sink for testing: keeps every notification it is given."""

from marketplace.notifications.sink.port import NotificationSink
from marketplace.notifications.templates import get_template


class RecordingSink(NotificationSink):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Sink unavailable"
        self.sent: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Sink unavailable") -> None:
        """Configure sink behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, recipient_id: str, template_code: str, data: dict[str, str]) -> None:
        if not self.should_succeed:
            raise RuntimeError(self.failure_reason)
        self.sent.append(
            {
                "recipient_id": recipient_id,
                "template_code": template_code,
                "data": data,
                "content": get_template(template_code).render(data),
            }
        )

    def codes_for(self, recipient_id: str) -> list[str]:
        return [n["template_code"] for n in self.sent if n["recipient_id"] == recipient_id]
