"""
Neo4j driver management for the recommendation service.

One async driver is shared per process; the graph accessors in
``peoplerec.graph`` each open a short-lived session on it, and the FastAPI
lifespan closes it on shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from neo4j import AsyncGraphDatabase, AsyncDriver

from .config import get_settings


_driver: AsyncDriver | None = None


def get_driver() -> AsyncDriver:
    """
    Lazily create and cache the Neo4j async driver.
    """
    global _driver  # noqa: PLW0603
    if _driver is None:
        settings = get_settings()
        _driver = AsyncGraphDatabase.driver(
            settings.neo4j_uri,
            auth=(settings.neo4j_user, settings.neo4j_password),
        )
    return _driver


async def close_driver() -> None:
    """Close the cached driver, if one was created."""
    global _driver  # noqa: PLW0603
    if _driver is not None:
        await _driver.close()
        _driver = None


@asynccontextmanager
async def neo4j_session(driver: AsyncDriver | None = None) -> AsyncIterator:
    """
    Provide an async Neo4j session as a context manager.

    A session runs one query at a time, so concurrent readers each open
    their own session on the shared driver.
    """
    driver = driver or get_driver()
    async with driver.session() as session:
        yield session
