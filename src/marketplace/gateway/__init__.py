"""Payment gateway registry.

Midtrans is used once ``MIDTRANS_SERVER_KEY`` is configured; without a key
the fake gateway answers, which is what development and tests run against.
Tests install their own instance with ``set_gateway``.
"""

from marketplace.config import Settings, get_settings
from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.gateway.port import PaymentGateway

_active: PaymentGateway | None = None


def _from_settings(settings: Settings) -> PaymentGateway:
    if not settings.midtrans_server_key:
        return FakeGateway()

    from marketplace.gateway.midtrans_adapter import MidtransGateway

    return MidtransGateway(
        settings.midtrans_server_key,
        production=settings.midtrans_production,
        timeout=settings.http_timeout,
    )


def get_gateway() -> PaymentGateway:
    global _active
    if _active is None:
        _active = _from_settings(get_settings())
    return _active


def set_gateway(gateway: PaymentGateway) -> None:
    global _active
    _active = gateway


def reset_gateway() -> None:
    global _active
    _active = None
