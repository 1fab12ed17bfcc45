"""Typed cache keys.

A key is built from a purpose and the identities it is scoped to, never by
concatenating ad hoc prefixes. Identity parts are percent-escaped, so a
``:`` inside an id cannot make two different keys render the same.
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote


class CachePurpose(Enum):
    BUYER_ORDER = "buyer-order"
    BUYER_ORDER_LIST = "buyer-order-list"
    SELLER_ORDER = "seller-order"
    SELLER_ORDER_LIST = "seller-order-list"
    SALES_REPORT = "sales-report"


_ARITY = {
    CachePurpose.BUYER_ORDER: 2,
    CachePurpose.BUYER_ORDER_LIST: 1,
    CachePurpose.SELLER_ORDER: 2,
    CachePurpose.SELLER_ORDER_LIST: 1,
    CachePurpose.SALES_REPORT: 2,
}


@dataclass(frozen=True)
class CacheKey:
    purpose: CachePurpose
    identity: tuple[str, ...]

    def __post_init__(self):
        expected = _ARITY[self.purpose]
        if len(self.identity) != expected:
            raise ValueError(f"{self.purpose.value} keys take {expected} identity part(s), got {len(self.identity)}")
        if any(part is None or str(part) == "" for part in self.identity):
            raise ValueError(f"{self.purpose.value} key has an empty identity part")

    def render(self) -> str:
        parts = [quote(str(part), safe="") for part in self.identity]
        return ":".join([self.purpose.value, *parts])

    def __str__(self) -> str:
        return self.render()


def buyer_order(buyer_id: str, order_id: str) -> CacheKey:
    return CacheKey(CachePurpose.BUYER_ORDER, (str(buyer_id), str(order_id)))


def buyer_order_list(buyer_id: str) -> CacheKey:
    return CacheKey(CachePurpose.BUYER_ORDER_LIST, (str(buyer_id),))


def seller_order(seller_id: str, order_id: str) -> CacheKey:
    return CacheKey(CachePurpose.SELLER_ORDER, (str(seller_id), str(order_id)))


def seller_order_list(seller_id: str) -> CacheKey:
    return CacheKey(CachePurpose.SELLER_ORDER_LIST, (str(seller_id),))


def sales_report(seller_id: str, store_id: str) -> CacheKey:
    return CacheKey(CachePurpose.SALES_REPORT, (str(seller_id), str(store_id)))
