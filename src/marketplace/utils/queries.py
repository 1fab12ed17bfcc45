"""Repository query helpers."""

from protean.utils.globals import current_domain

PAGE_SIZE = 100


def fetch_all(aggregate_cls, **filters) -> list:
    """Return every record matching ``filters``, paging past the default limit."""
    dao = current_domain.repository_for(aggregate_cls)._dao
    results: list = []
    offset = 0
    while True:
        query = dao.query.filter(**filters) if filters else dao.query
        page = query.offset(offset).limit(PAGE_SIZE).all().items
        results.extend(page)
        if len(page) < PAGE_SIZE:
            return results
        offset += PAGE_SIZE


def fetch_one(aggregate_cls, **filters):
    """Return the single record matching ``filters``, or None."""
    items = current_domain.repository_for(aggregate_cls)._dao.query.filter(**filters).limit(1).all().items
    return items[0] if items else None
