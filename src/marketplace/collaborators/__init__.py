"""Collaborator registry.

Provides get_*() / set_*() accessors for the cart, catalog, identity and
review collaborators. In-memory adapters are used until a deployment
installs its own.
"""

from marketplace.collaborators.memory import (
    InMemoryCart,
    InMemoryCatalog,
    InMemoryDirectory,
    InMemoryReviews,
)
from marketplace.collaborators.port import CartStore, CatalogReader, IdentityDirectory, ReviewReader

_instances: dict[str, object] = {}

_DEFAULTS = {
    "cart": InMemoryCart,
    "catalog": InMemoryCatalog,
    "directory": InMemoryDirectory,
    "reviews": InMemoryReviews,
}


def _get(name: str):
    if name not in _instances:
        _instances[name] = _DEFAULTS[name]()
    return _instances[name]


def get_cart_store() -> CartStore:
    return _get("cart")


def get_catalog() -> CatalogReader:
    return _get("catalog")


def get_directory() -> IdentityDirectory:
    return _get("directory")


def get_reviews() -> ReviewReader:
    return _get("reviews")


def set_cart_store(cart: CartStore) -> None:
    _instances["cart"] = cart


def set_catalog(catalog: CatalogReader) -> None:
    _instances["catalog"] = catalog


def set_directory(directory: IdentityDirectory) -> None:
    _instances["directory"] = directory


def set_reviews(reviews: ReviewReader) -> None:
    _instances["reviews"] = reviews


def reset_collaborators() -> None:
    """Reset all collaborator singletons (useful for testing)."""
    _instances.clear()
