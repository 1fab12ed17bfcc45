"""Sales report recomputation.

Always a full recompute from the store's current seller orders and product
reviews, never an incremental update: a cancellation or a new review can
change figures retroactively. ``compute_sales_figures`` is pure and
deterministic (records and products are walked in sorted order), so the same
inputs always produce identical output.
"""

from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cache import keys
from marketplace.cache.aside import invalidate
from marketplace.collaborators import get_catalog, get_reviews
from marketplace.ordering.order import ItemStatus, PaymentStatus
from marketplace.ordering.seller_order import SellerOrder
from marketplace.reporting.sales_report import SalesReport
from marketplace.saga.steps import saga_action
from marketplace.utils.queries import fetch_all

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SalesFigures:
    total_sales: int
    total_income: float
    products: tuple[dict, ...]

    def to_dict(self) -> dict:
        return asdict(self)


def compute_sales_figures(
    seller_orders: Iterable[SellerOrder],
    ratings_for: Callable[[str], list[int]],
    stock_for: Callable[[str], int],
) -> SalesFigures:
    """Totals over FINISHED items of paid seller orders, plus mean ratings."""
    units: dict[str, int] = {}
    income: dict[str, float] = {}
    names: dict[str, str] = {}

    for seller_order in sorted(seller_orders, key=lambda so: str(so.id)):
        if seller_order.payment_status != PaymentStatus.SUCCESS.value:
            continue
        for item in sorted(seller_order.items or [], key=lambda i: str(i.product_id)):
            if item.status != ItemStatus.FINISHED.value:
                continue
            product_id = str(item.product_id)
            units[product_id] = units.get(product_id, 0) + item.quantity
            income[product_id] = income.get(product_id, 0.0) + item.quantity * item.price
            names.setdefault(product_id, item.product_name)

    products = []
    for product_id in sorted(units):
        ratings = ratings_for(product_id)
        products.append(
            {
                "product_id": product_id,
                "product_name": names[product_id],
                "total_sales": units[product_id],
                "total_income": income[product_id],
                "stock": stock_for(product_id),
                "average_rating": sum(ratings) / len(ratings) if ratings else 0.0,
            }
        )

    return SalesFigures(
        total_sales=sum(units[p] for p in sorted(units)),
        total_income=sum(income[p] for p in sorted(income)),
        products=tuple(products),
    )


def _stock_for(product_id: str) -> int:
    try:
        return get_catalog().get_product(product_id).stock
    except ObjectNotFoundError:
        return 0


@saga_action("sales_report.recompute")
def recompute_sales_report(store_id: str, seller_id: str) -> SalesReport:
    """Rebuild the store's report and drop its cached copy."""
    repo = current_domain.repository_for(SalesReport)
    report = repo.get(store_id)
    if str(report.seller_id) != str(seller_id):
        raise ObjectNotFoundError(f"Sales report for store {store_id} does not exist")

    reviews = get_reviews()
    figures = compute_sales_figures(
        fetch_all(SellerOrder, seller_id=seller_id, store_id=store_id),
        ratings_for=lambda product_id: [review.rating for review in reviews.list_reviews(product_id)],
        stock_for=_stock_for,
    )
    report.replace_figures(figures.total_sales, figures.total_income, list(figures.products))
    repo.add(report)

    invalidate(keys.sales_report(seller_id, store_id))
    logger.info(
        "sales_report_recomputed",
        store_id=store_id,
        seller_id=seller_id,
        total_sales=figures.total_sales,
        products=len(figures.products),
    )
    return report
