"""Cleanup backends for generated test data."""
import logging
from typing import Optional

import httpx

from testvault.domain.interfaces import CleanupBackend, DataStore, Registry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
TEMP_CATEGORY = "temp"


class LoggingCleanupBackend(CleanupBackend):
    """Placeholder for systems the framework does not own (database, API)."""

    def __init__(self, name: str):
        self.name = name

    async def cleanup(self, registry: Registry) -> None:
        total = sum(len(items) for items in registry.values())
        logger.info(f"Cleaning up {self.name} data ({total} tracked entities)...")


class FileCleanupBackend(CleanupBackend):
    """Removes temporary files from the data directory."""

    name = "file"

    def __init__(self, store: DataStore, category: str = TEMP_CATEGORY):
        self.store = store
        self.category = category

    async def cleanup(self, registry: Registry) -> None:
        removed = self.store.clear_category(self.category)
        logger.info(f"Cleaned up {removed} temporary files")


class HttpApiCleanupBackend(CleanupBackend):
    """Deletes tracked entities through a REST API.

    Issues `DELETE {base_url}/{type}s/{id}` for every tracked entity with an
    id. Failed deletions are logged and skipped.
    """

    name = "api"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport

    async def cleanup(self, registry: Registry) -> None:
        deleted = 0
        failed = 0

        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers, transport=self._transport) as client:
            for entity_type, entities in registry.items():
                for entity in entities:
                    entity_id = entity.get("id") if isinstance(entity, dict) else None
                    if not entity_id:
                        continue

                    url = f"{self.base_url}/{entity_type}s/{entity_id}"
                    try:
                        response = await client.delete(url)
                    except httpx.HTTPError as e:
                        failed += 1
                        logger.warning(f"API cleanup request failed for {url}: {e}")
                        continue

                    # 404 means already gone
                    if response.status_code < 400 or response.status_code == 404:
                        deleted += 1
                    else:
                        failed += 1
                        logger.warning(f"API cleanup for {url} returned {response.status_code}")

        logger.info(f"API cleanup finished: {deleted} deleted, {failed} failed")
