"""SalesReport aggregate: per-store totals of completed, paid sales.

Opened zero-valued when a store is created and only ever updated by a full
recompute afterwards; the products list is replaced wholesale each time.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="SalesReport")
class SalesReportRecomputed:
    """The report's figures were rebuilt from current seller orders and reviews."""

    __version__ = 1

    store_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    total_sales = Integer(required=True)
    total_income = Float(required=True)
    product_count = Integer(required=True)
    recomputed_at = DateTime(required=True)


@marketplace.entity(part_of="SalesReport")
class ProductSales:
    """Units sold and average rating for one product of the store."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    total_sales = Integer(default=0)
    total_income = Float(default=0.0)
    stock = Integer(default=0)
    average_rating = Float(default=0.0)


@marketplace.aggregate
class SalesReport:
    store_id = Identifier(identifier=True, required=True)
    seller_id = Identifier(required=True)
    total_sales = Integer(default=0)
    total_income = Float(default=0.0)
    products = HasMany(ProductSales)
    created_at = DateTime()
    recomputed_at = DateTime()

    @classmethod
    def open(cls, store_id: str, seller_id: str) -> "SalesReport":
        """Zero-valued report for a newly created store."""
        return cls(
            store_id=store_id,
            seller_id=seller_id,
            total_sales=0,
            total_income=0.0,
            created_at=datetime.now(UTC),
        )

    def replace_figures(self, total_sales: int, total_income: float, products_data: list[dict]) -> None:
        now = datetime.now(UTC)
        if self.products:
            self.remove_products(list(self.products))
        for data in products_data:
            self.add_products(ProductSales(**data))
        self.total_sales = total_sales
        self.total_income = total_income
        self.recomputed_at = now
        self.raise_(
            SalesReportRecomputed(
                store_id=self.store_id,
                seller_id=self.seller_id,
                total_sales=total_sales,
                total_income=total_income,
                product_count=len(products_data),
                recomputed_at=now,
            )
        )
