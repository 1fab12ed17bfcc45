"""Midtrans payment gateway adapter.

Uses the Snap API to open hosted payment pages and the Core API v2 status
endpoint to re-verify transactions. Every request carries the configured
timeout; a timeout surfaces as ``GatewayTimeout`` and any other transport or
HTTP failure as ``GatewayError``.
"""

import hashlib
import hmac

import httpx
import structlog

from marketplace.gateway.port import (
    GatewayError,
    GatewayTimeout,
    PaymentGateway,
    SessionResult,
    TransactionStatus,
)

logger = structlog.get_logger(__name__)

_SANDBOX = {
    "snap": "https://app.sandbox.midtrans.com/snap/v1",
    "api": "https://api.sandbox.midtrans.com/v2",
}
_PRODUCTION = {
    "snap": "https://app.midtrans.com/snap/v1",
    "api": "https://api.midtrans.com/v2",
}


class MidtransGateway(PaymentGateway):
    def __init__(
        self,
        server_key: str,
        production: bool = False,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.server_key = server_key
        self.urls = _PRODUCTION if production else _SANDBOX
        self._client = httpx.Client(
            auth=(server_key, ""),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("midtrans_timeout", method=method, url=url)
            raise GatewayTimeout(f"{method} {url} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise GatewayError(f"{method} {url} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"{method} {url} failed: {exc}") from exc
        return response.json()

    def create_session(self, order_id: str, amount: float) -> SessionResult:
        body = self._request(
            "POST",
            f"{self.urls['snap']}/transactions",
            json={
                "transaction_details": {
                    "order_id": order_id,
                    "gross_amount": int(round(amount)),
                }
            },
        )
        if "redirect_url" not in body:
            raise GatewayError(f"Snap session for {order_id} returned no redirect_url")
        return SessionResult(token=body.get("token", ""), redirect_url=body["redirect_url"])

    def query_status(self, order_id: str) -> TransactionStatus:
        body = self._request("GET", f"{self.urls['api']}/{order_id}/status")
        # Unknown transactions come back as HTTP 200 with status_code "404".
        if str(body.get("status_code")) == "404":
            return TransactionStatus(transaction_status="not_found")
        return TransactionStatus(
            transaction_status=body.get("transaction_status", ""),
            fraud_status=body.get("fraud_status"),
            transaction_id=body.get("transaction_id"),
            payment_type=body.get("payment_type"),
        )

    def verify_signature(self, payload: dict) -> bool:
        raw = "{}{}{}{}".format(
            payload.get("order_id", ""),
            payload.get("status_code", ""),
            payload.get("gross_amount", ""),
            self.server_key,
        )
        expected = hashlib.sha512(raw.encode("utf-8")).hexdigest()
        return hmac.compare_digest(expected, str(payload.get("signature_key", "")))
