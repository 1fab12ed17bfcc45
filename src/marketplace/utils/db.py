"""Schema management for SQL-backed deployments of the marketplace domain.

The in-memory provider used in development and tests has no schema, so both
helpers skip it and return an empty list.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    return [p for p in domain.providers.values() if p.conn_info["provider"] in SQL_PROVIDERS]


def _register_models(domain: Domain, provider) -> None:
    # A model's table is only added to the provider metadata once its DAO is built.
    records = [*domain.registry.aggregates.values(), *domain.registry.entities.values()]
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> list[str]:
    """Create the tables for every SQL provider; returns the table names."""
    created: list[str] = []
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_models(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            tables = sorted(provider._metadata.tables)
            logger.info("schema_created", provider=provider.name, tables=len(tables))
            created.extend(tables)
    return created


def drop_db(domain: Domain) -> list[str]:
    """Drop the tables created by ``setup_db``; returns the table names."""
    dropped: list[str] = []
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_models(domain, provider)
            tables = sorted(provider._metadata.tables)
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("schema_dropped", provider=provider.name, tables=len(tables))
            dropped.extend(tables)
    return dropped
