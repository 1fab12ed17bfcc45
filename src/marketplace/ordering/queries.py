"""Cached reads of buyer orders and seller orders."""

from protean.exceptions import ObjectNotFoundError

from marketplace.cache import keys
from marketplace.cache.aside import read_through
from marketplace.config import get_settings
from marketplace.ordering.access import buyer_order
from marketplace.ordering.order import Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.utils.queries import fetch_all


def _newest_first(records: list) -> list[dict]:
    return [r.to_dict() for r in sorted(records, key=lambda r: r.created_at, reverse=True)]


def get_order(buyer_id: str, order_id: str) -> dict:
    return read_through(
        keys.buyer_order(buyer_id, order_id),
        lambda: buyer_order(buyer_id, order_id).to_dict(),
        get_settings().order_cache_ttl,
    )


def list_orders(buyer_id: str) -> list[dict]:
    return read_through(
        keys.buyer_order_list(buyer_id),
        lambda: _newest_first(fetch_all(Order, buyer_id=buyer_id)),
        get_settings().order_cache_ttl,
    )


def _seller_order(seller_id: str, order_id: str) -> dict:
    records = fetch_all(SellerOrder, order_id=order_id, seller_id=seller_id)
    if not records:
        raise ObjectNotFoundError(f"Order {order_id} does not exist")
    return records[0].to_dict()


def get_seller_order(seller_id: str, order_id: str) -> dict:
    return read_through(
        keys.seller_order(seller_id, order_id),
        lambda: _seller_order(seller_id, order_id),
        get_settings().order_cache_ttl,
    )


def list_seller_orders(seller_id: str) -> list[dict]:
    return read_through(
        keys.seller_order_list(seller_id),
        lambda: _newest_first(fetch_all(SellerOrder, seller_id=seller_id)),
        get_settings().order_cache_ttl,
    )
