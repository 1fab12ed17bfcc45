"""Notification sink factory.

Provides get_sink() / set_sink(); the in-app sink is the default.
"""

from marketplace.notifications.sink.port import NotificationSink

_current_sink: NotificationSink | None = None


def get_sink() -> NotificationSink:
    global _current_sink
    if _current_sink is None:
        from marketplace.notifications.sink.in_app import InAppSink

        _current_sink = InAppSink()
    return _current_sink


def set_sink(sink: NotificationSink) -> None:
    """Override the active sink (useful for tests)."""
    global _current_sink
    _current_sink = sink


def reset_sink() -> None:
    global _current_sink
    _current_sink = None
