"""Notification sink port: the outbound side of the outbox."""

from abc import ABC, abstractmethod


class NotificationSink(ABC):
    @abstractmethod
    def notify(self, recipient_id: str, template_code: str, data: dict[str, str]) -> None:
        """Deliver one notification. Raises on failure; the relay records it."""
        ...
