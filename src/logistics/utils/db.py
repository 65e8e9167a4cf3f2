"""Database schema helpers for SQL-backed providers.

The memory provider needs no schema; SQLite and PostgreSQL providers get
their tables created from the SQLAlchemy models Protean builds for each
aggregate, entity and projection.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    return [p for p in domain.providers.values() if p.conn_info["provider"] in SQL_PROVIDERS]


def _register_models(domain: Domain, provider) -> None:
    # Touching ``_dao`` makes Protean build and register the SQLAlchemy model.
    registries = (domain.registry.aggregates, domain.registry.entities, domain.registry.projections)
    for registry in registries:
        for record in registry.values():
            if record.cls.meta_.provider == provider.name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every SQL provider of the domain."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_models(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("database_schema_created", provider=provider.name)


def drop_db(domain: Domain) -> None:
    """Drop tables of every SQL provider of the domain."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_models(domain, provider)
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("database_schema_dropped", provider=provider.name)


READ_BATCH_SIZE = 1_000


def fetch_all(query) -> list:
    """Every row matching ``query``, read in batches of ``READ_BATCH_SIZE``.

    The query should carry an ordering so batches do not overlap on SQL
    providers.
    """
    rows: list = []
    while True:
        result = query.offset(len(rows)).limit(READ_BATCH_SIZE).all()
        rows.extend(result.items)
        if not result.items or len(rows) >= result.total:
            return rows
