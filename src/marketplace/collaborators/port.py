"""Abstract ports for the collaborators the order workflow consumes.

Carts, the product catalog, buyer and seller identity, and product reviews
are owned by other parts of the platform. Adapters raise
``CollaboratorUnavailable`` when the collaborator cannot be reached and
``ObjectNotFoundError`` for unknown records.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CartItem:
    """A cart line with the unit price cached when it was added to the cart."""

    product_id: str
    store_id: str
    product_name: str
    price: float
    quantity: int
    selected: bool = False
    product_images: tuple[str, ...] = ()


@dataclass(frozen=True)
class Product:
    product_id: str
    store_id: str
    name: str
    price: float
    stock: int
    images: tuple[str, ...] = ()


@dataclass(frozen=True)
class BuyerProfile:
    buyer_id: str
    email: str
    name: str
    shipping_address: dict | None = None


@dataclass(frozen=True)
class SellerProfile:
    seller_id: str
    email: str
    name: str
    store_id: str


@dataclass(frozen=True)
class Review:
    product_id: str
    rating: int


class CartStore(ABC):
    @abstractmethod
    def has_cart(self, buyer_id: str) -> bool: ...

    @abstractmethod
    def get_cart(self, buyer_id: str) -> list[CartItem]: ...

    @abstractmethod
    def clear_items(self, buyer_id: str, product_ids: list[str]) -> None:
        """Remove checked-out lines from the buyer's cart."""


class CatalogReader(ABC):
    @abstractmethod
    def get_product(self, product_id: str) -> Product: ...

    @abstractmethod
    def decrement_stock(self, store_id: str, product_id: str, quantity: int) -> int:
        """Reduce stock and return the number of records modified (0 or 1)."""


class IdentityDirectory(ABC):
    @abstractmethod
    def find_buyer(self, buyer_id: str) -> BuyerProfile: ...

    @abstractmethod
    def find_seller_by_email(self, email: str) -> SellerProfile: ...

    @abstractmethod
    def find_seller_by_store(self, store_id: str) -> SellerProfile: ...


class ReviewReader(ABC):
    @abstractmethod
    def list_reviews(self, product_id: str) -> list[Review]: ...
