"""
Catalog repository.
Loads and saves the single catalog document held in the object store.

There is no partial update and no locking: every mutation is a full
load -> modify -> save cycle, and concurrent cycles resolve as last write wins.
Nothing is cached between calls.
"""
import asyncio

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from catalog.models.asset import Catalog
from core.aws.object_store import ObjectStore
from core.exceptions import (
    CatalogUnavailableError,
    CatalogWriteError,
    ObjectNotFoundError,
    ObjectStoreException
)
from core.utils.logger import setup_logger

logger = setup_logger(__name__)

CATALOG_CONTENT_TYPE = "application/json"


class CatalogRepository:
    """Repository for the catalog document"""

    def __init__(self, object_store: ObjectStore, catalog_key: str, fetch_timeout: float = 10.0):
        """
        Initialize repository with an object store.

        Args:
            object_store: Store holding the catalog document
            catalog_key: Well-known key of the catalog document
            fetch_timeout: Seconds to wait for a catalog read before giving up
        """
        self.object_store = object_store
        self.catalog_key = catalog_key
        self.fetch_timeout = fetch_timeout

    async def _fetch(self) -> Catalog:
        try:
            raw = await asyncio.wait_for(
                run_in_threadpool(self.object_store.get_object, self.catalog_key),
                timeout=self.fetch_timeout
            )
        except asyncio.TimeoutError:
            raise CatalogUnavailableError(
                message=f"Catalog fetch timed out after {self.fetch_timeout}s",
                detail={"key": self.catalog_key}
            )
        try:
            return Catalog.from_json(raw)
        except ValidationError as e:
            raise CatalogUnavailableError(
                message="Catalog document is corrupt",
                detail={"key": self.catalog_key, "errors": e.error_count()}
            )

    async def load_strict(self) -> Catalog:
        """
        Load the catalog, failing on any problem.

        Used by the download path, where a missing or unreadable catalog
        must not be mistaken for an unknown asset.

        Raises:
            CatalogUnavailableError: If the document can't be fetched or parsed
        """
        try:
            return await self._fetch()
        except CatalogUnavailableError as e:
            logger.error(f"Failed to fetch catalog: {e.message}")
            raise
        except ObjectStoreException as e:
            logger.error(f"Failed to fetch catalog: {e.message}")
            raise CatalogUnavailableError(
                message="Catalog unavailable",
                detail={"key": self.catalog_key, "cause": type(e).__name__}
            )

    async def load_lenient(self) -> Catalog:
        """
        Load the catalog, degrading to an empty catalog on any problem.

        Only for read-only views; never save what this returns.
        """
        try:
            return await self.load_strict()
        except CatalogUnavailableError:
            logger.warning("Serving empty catalog in place of unavailable catalog")
            return Catalog()

    async def load_for_update(self) -> Catalog:
        """
        Load the catalog ahead of a mutation.

        A catalog that does not exist yet is treated as empty so the first
        registration creates it. Every other failure raises, so a transient
        read error can never lead to saving over existing entries.

        Raises:
            CatalogUnavailableError: If an existing document can't be fetched or parsed
        """
        try:
            return await self._fetch()
        except ObjectNotFoundError:
            logger.info(f"Catalog {self.catalog_key} not found, starting empty catalog")
            return Catalog()
        except CatalogUnavailableError as e:
            logger.error(f"Failed to fetch catalog for update: {e.message}")
            raise
        except ObjectStoreException as e:
            logger.error(f"Failed to fetch catalog for update: {e.message}")
            raise CatalogUnavailableError(
                message="Catalog unavailable",
                detail={"key": self.catalog_key, "cause": type(e).__name__}
            )

    async def save(self, catalog: Catalog) -> None:
        """
        Overwrite the catalog document. No retry, no version check.

        Raises:
            CatalogWriteError: If the write fails
        """
        try:
            await run_in_threadpool(
                self.object_store.put_object,
                self.catalog_key,
                catalog.to_json(),
                CATALOG_CONTENT_TYPE
            )
        except ObjectStoreException as e:
            logger.error(f"Failed to save catalog: {e.message}")
            raise CatalogWriteError(
                message="Catalog update failed",
                detail={"key": self.catalog_key, "cause": type(e).__name__}
            )
        logger.info(f"Saved catalog with {len(catalog.assets)} assets")
