"""Opening and reading sales reports."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.cache import keys
from marketplace.cache.aside import read_through
from marketplace.config import get_settings
from marketplace.reporting.sales_report import SalesReport


def open_sales_report(store_id: str, seller_id: str) -> SalesReport:
    """Create the zero-valued report when a store is created."""
    repo = current_domain.repository_for(SalesReport)
    try:
        repo.get(store_id)
    except ObjectNotFoundError:
        report = SalesReport.open(store_id, seller_id)
        repo.add(report)
        return report
    raise ValidationError({"store_id": [f"Store {store_id} already has a sales report"]})


def _load(seller_id: str, store_id: str) -> dict:
    report = current_domain.repository_for(SalesReport).get(store_id)
    if str(report.seller_id) != str(seller_id):
        raise ObjectNotFoundError(f"Sales report for store {store_id} does not exist")
    return report.to_dict()


def get_sales_report(seller_id: str, store_id: str) -> dict:
    return read_through(
        keys.sales_report(seller_id, store_id),
        lambda: _load(seller_id, store_id),
        get_settings().sales_report_cache_ttl,
    )
