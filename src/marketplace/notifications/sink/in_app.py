"""In-app notification sink: renders the template and pushes it live."""

import structlog

from marketplace.notifications.live import get_live_registry
from marketplace.notifications.sink.port import NotificationSink
from marketplace.notifications.templates import get_template

logger = structlog.get_logger(__name__)


class InAppSink(NotificationSink):
    def notify(self, recipient_id: str, template_code: str, data: dict[str, str]) -> None:
        content = get_template(template_code).render(data)
        message = {
            "template_code": template_code,
            "subject": content["subject"],
            "body": content["body"],
            "data": data,
        }
        delivered = get_live_registry().deliver(recipient_id, message)
        logger.info(
            "notification_delivered" if delivered else "notification_recipient_offline",
            recipient_id=recipient_id,
            template_code=template_code,
        )
