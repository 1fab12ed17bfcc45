"""In-memory collaborator adapters for development and testing.

Each adapter is seeded directly by tests and can be switched into a failing
mode to exercise the workflow's external-dependency handling.
"""

from dataclasses import replace

from protean.exceptions import ObjectNotFoundError

from marketplace.collaborators.port import (
    BuyerProfile,
    CartItem,
    CartStore,
    CatalogReader,
    IdentityDirectory,
    Product,
    Review,
    ReviewReader,
    SellerProfile,
)
from marketplace.errors import CollaboratorUnavailable


class _Failable:
    def __init__(self) -> None:
        self.unavailable: bool = False
        self.calls: list[dict] = []

    def configure(self, unavailable: bool) -> None:
        """Configure collaborator availability at runtime."""
        self.unavailable = unavailable

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if self.unavailable:
            raise CollaboratorUnavailable(type(self).__name__, f"{method} failed: collaborator unavailable")


class InMemoryCart(_Failable, CartStore):
    def __init__(self) -> None:
        super().__init__()
        self._carts: dict[str, list[CartItem]] = {}

    def put(self, buyer_id: str, items: list[CartItem]) -> None:
        self._carts[buyer_id] = list(items)

    def has_cart(self, buyer_id: str) -> bool:
        self._record("has_cart", buyer_id=buyer_id)
        return buyer_id in self._carts

    def get_cart(self, buyer_id: str) -> list[CartItem]:
        self._record("get_cart", buyer_id=buyer_id)
        return list(self._carts.get(buyer_id, []))

    def clear_items(self, buyer_id: str, product_ids: list[str]) -> None:
        self._record("clear_items", buyer_id=buyer_id, product_ids=list(product_ids))
        remaining = [i for i in self._carts.get(buyer_id, []) if i.product_id not in set(product_ids)]
        self._carts[buyer_id] = remaining


class InMemoryCatalog(_Failable, CatalogReader):
    def __init__(self) -> None:
        super().__init__()
        self._products: dict[str, Product] = {}

    def put(self, product: Product) -> None:
        self._products[product.product_id] = product

    def get_product(self, product_id: str) -> Product:
        self._record("get_product", product_id=product_id)
        try:
            return self._products[product_id]
        except KeyError:
            raise ObjectNotFoundError(f"Product {product_id} does not exist") from None

    def decrement_stock(self, store_id: str, product_id: str, quantity: int) -> int:
        self._record("decrement_stock", store_id=store_id, product_id=product_id, quantity=quantity)
        product = self._products.get(product_id)
        if product is None or product.store_id != store_id:
            return 0
        self._products[product_id] = replace(product, stock=product.stock - quantity)
        return 1


class InMemoryDirectory(_Failable, IdentityDirectory):
    def __init__(self) -> None:
        super().__init__()
        self._buyers: dict[str, BuyerProfile] = {}
        self._sellers: dict[str, SellerProfile] = {}

    def add_buyer(self, buyer: BuyerProfile) -> None:
        self._buyers[buyer.buyer_id] = buyer

    def add_seller(self, seller: SellerProfile) -> None:
        self._sellers[seller.seller_id] = seller

    def find_buyer(self, buyer_id: str) -> BuyerProfile:
        self._record("find_buyer", buyer_id=buyer_id)
        try:
            return self._buyers[buyer_id]
        except KeyError:
            raise ObjectNotFoundError(f"Buyer {buyer_id} does not exist") from None

    def find_seller_by_email(self, email: str) -> SellerProfile:
        self._record("find_seller_by_email", email=email)
        seller = next((s for s in self._sellers.values() if s.email == email), None)
        if seller is None:
            raise ObjectNotFoundError(f"Seller with email {email} does not exist")
        return seller

    def find_seller_by_store(self, store_id: str) -> SellerProfile:
        self._record("find_seller_by_store", store_id=store_id)
        seller = next((s for s in self._sellers.values() if s.store_id == store_id), None)
        if seller is None:
            raise ObjectNotFoundError(f"No seller owns store {store_id}")
        return seller


class InMemoryReviews(_Failable, ReviewReader):
    def __init__(self) -> None:
        super().__init__()
        self._reviews: dict[str, list[Review]] = {}

    def add(self, review: Review) -> None:
        self._reviews.setdefault(review.product_id, []).append(review)

    def list_reviews(self, product_id: str) -> list[Review]:
        self._record("list_reviews", product_id=product_id)
        return list(self._reviews.get(product_id, []))
