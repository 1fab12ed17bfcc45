"""Idempotent writes against seller orders and the catalog, plus view invalidation.

The buyer Order is written first by each workflow operation; the writes here
bring the other records in line with it. Each is registered as a saga action
so a failed attempt can be re-applied by the repair sweep, and each returns
False instead of failing when the record already holds the target state.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cache import keys
from marketplace.cache.aside import invalidate
from marketplace.collaborators import get_catalog
from marketplace.ordering.order import ItemStatus, Order
from marketplace.ordering.seller_order import SellerOrder
from marketplace.saga.steps import saga_action
from marketplace.utils.queries import fetch_all


@saga_action("seller_order.mirror_item_status")
def mirror_item_status(seller_order_id: str, product_id: str, target: str, expected: str) -> bool:
    repo = current_domain.repository_for(SellerOrder)
    seller_order = repo.get(seller_order_id)
    changed = seller_order.mirror_item_status(product_id, ItemStatus(target), ItemStatus(expected))
    if changed:
        repo.add(seller_order)
    return changed


@saga_action("seller_order.remove_item")
def remove_seller_order_item(seller_order_id: str, product_id: str) -> bool:
    repo = current_domain.repository_for(SellerOrder)
    seller_order = repo.get(seller_order_id)
    changed = seller_order.remove_item(product_id)
    if changed:
        repo.add(seller_order)
    return changed


@saga_action("seller_order.confirm_payment")
def confirm_seller_order_payment(seller_order_id: str) -> bool:
    repo = current_domain.repository_for(SellerOrder)
    seller_order = repo.get(seller_order_id)
    changed = seller_order.confirm_payment()
    if changed:
        repo.add(seller_order)
    return changed


@saga_action("order.confirm_payment")
def confirm_order_payment(order_id: str, method: str | None, transaction_id: str | None) -> bool:
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    changed = order.confirm_payment(method, transaction_id)
    if changed:
        repo.add(order)
    return changed


@saga_action("catalog.decrement_stock")
def decrement_stock(store_id: str, product_id: str, quantity: int) -> int:
    # Not idempotent: run without retry; a repair applies it once more.
    return get_catalog().decrement_stock(store_id, product_id, quantity)


@saga_action("order.delete")
def delete_order(order_id: str) -> bool:
    repo = current_domain.repository_for(Order)
    try:
        order = repo.get(order_id)
    except ObjectNotFoundError:
        return False
    repo._dao.delete(order)
    return True


@saga_action("seller_order.delete")
def delete_seller_order(seller_order_id: str) -> bool:
    repo = current_domain.repository_for(SellerOrder)
    try:
        seller_order = repo.get(seller_order_id)
    except ObjectNotFoundError:
        return False
    repo._dao.delete(seller_order)
    return True


def seller_orders_for(order_id: str) -> list[SellerOrder]:
    return fetch_all(SellerOrder, order_id=order_id)


def seller_order_holding(order_id: str, product_id: str) -> SellerOrder | None:
    """The seller order whose slice contains ``product_id``."""
    return next((so for so in seller_orders_for(order_id) if so.has_item(product_id)), None)


def invalidate_order_views(order_id: str, buyer_id: str, seller_ids: list[str]) -> None:
    """Drop every cached view of the order, for the buyer and each seller."""
    cache_keys = [keys.buyer_order(buyer_id, order_id), keys.buyer_order_list(buyer_id)]
    for seller_id in dict.fromkeys(seller_ids):
        cache_keys.append(keys.seller_order(seller_id, order_id))
        cache_keys.append(keys.seller_order_list(seller_id))
    invalidate(*cache_keys)
