"""Runtime settings for the marketplace, read from the environment.

Database providers are configured in ``domain.toml`` (selected by
``PROTEAN_ENV``). Everything else the workflow needs at runtime lives here.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    redis_url: str | None = None
    order_cache_ttl: int = 60 * 60
    sales_report_cache_ttl: int = 24 * 60 * 60
    low_stock_threshold: int = 2
    midtrans_server_key: str | None = None
    midtrans_production: bool = False
    http_timeout: float = 10.0
    notification_queue_size: int = 1000
    log_level: str | None = None
    log_format: str = "console"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from environment variables (cached for the process)."""
    return Settings(
        environment=os.getenv("PROTEAN_ENV", "development"),
        redis_url=os.getenv("MARKETPLACE_REDIS_URL") or None,
        order_cache_ttl=int(os.getenv("MARKETPLACE_ORDER_CACHE_TTL", 60 * 60)),
        sales_report_cache_ttl=int(os.getenv("MARKETPLACE_REPORT_CACHE_TTL", 24 * 60 * 60)),
        low_stock_threshold=int(os.getenv("MARKETPLACE_LOW_STOCK_THRESHOLD", 2)),
        midtrans_server_key=os.getenv("MIDTRANS_SERVER_KEY") or None,
        midtrans_production=_env_bool("MIDTRANS_PRODUCTION"),
        http_timeout=float(os.getenv("MARKETPLACE_HTTP_TIMEOUT", 10.0)),
        notification_queue_size=int(os.getenv("MARKETPLACE_NOTIFICATION_QUEUE_SIZE", 1000)),
        log_level=os.getenv("LOG_LEVEL") or None,
        log_format=os.getenv("LOG_FORMAT", "console").lower(),
    )
