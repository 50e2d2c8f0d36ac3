"""
Asset registrar.
Stores uploaded files, records them in the catalog and revokes them.

Write ordering:
- register: object bytes first, catalog second, so the catalog never points
  at an object that was not written.
- revoke: object delete first, catalog second, aborting before the catalog
  is touched if the delete fails.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from catalog.models.asset import Asset
from catalog.repositories import CatalogRepository
from core.aws.object_store import ObjectInfo, ObjectStore
from core.exceptions import (
    AssetNotFoundError,
    BadRequestError,
    CatalogUnavailableError,
    ObjectStoreException,
    PartialFailureError,
    WeakPasswordError
)
from core.utils.helpers import (
    build_download_url,
    build_object_key,
    generate_asset_id,
    is_strong_password
)
from core.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_OBJECT_CONTENT_TYPE = "application/octet-stream"
WEAK_PASSWORD_MESSAGE = (
    "Password must contain at least one uppercase letter, one number, "
    "and one special character"
)


@dataclass
class RegistrationResult:
    """A newly registered asset and the locator to share with downloaders"""
    asset: Asset
    download_url: str


class AssetRegistrar:
    """Write-side operations over the object store and catalog"""

    def __init__(
        self,
        object_store: ObjectStore,
        catalog_repo: CatalogRepository,
        download_base_url: str
    ):
        self.object_store = object_store
        self.catalog_repo = catalog_repo
        self.download_base_url = download_base_url

    async def register(
        self,
        original_file_name: str,
        folder_path: Optional[str],
        password: str,
        uploader: Optional[str],
        data: bytes,
        content_type: Optional[str] = None
    ) -> RegistrationResult:
        """
        Store a file and add it to the catalog.

        Args:
            original_file_name: Name as uploaded; becomes the download save name
            folder_path: Optional folder prefix for the object key
            password: Download token; must satisfy the password policy
            uploader: Identity of the uploading administrator
            data: File contents
            content_type: MIME type recorded on the stored object

        Returns:
            RegistrationResult with the asset and its download URL

        Raises:
            BadRequestError: If no file name was supplied
            WeakPasswordError: If the password fails the policy
            ObjectStoreException: If the object write fails (catalog untouched)
            PartialFailureError: If the object was written but the catalog was not
        """
        if not original_file_name:
            raise BadRequestError(message="No file provided")

        if not is_strong_password(password):
            raise WeakPasswordError(message=WEAK_PASSWORD_MESSAGE)

        object_key = build_object_key(original_file_name, folder_path)

        logger.info(f"Storing object {object_key} ({len(data)} bytes)")
        await run_in_threadpool(
            self.object_store.put_object,
            object_key,
            data,
            content_type or DEFAULT_OBJECT_CONTENT_TYPE
        )

        try:
            catalog = await self.catalog_repo.load_for_update()

            asset_id = generate_asset_id(original_file_name)
            while catalog.find(asset_id) is not None:
                asset_id = generate_asset_id(original_file_name)

            asset = Asset(
                asset_id=asset_id,
                file_name=original_file_name,
                cos_object_key=object_key,
                password=password,
                created_at=datetime.now(timezone.utc),
                created_by=uploader
            )
            await self.catalog_repo.save(catalog.with_asset(asset))
        except CatalogUnavailableError as e:
            logger.error(
                f"Object {object_key} stored but catalog update failed; object is orphaned"
            )
            raise PartialFailureError(
                message="File stored but catalog update failed",
                detail={"orphaned_object_key": object_key, "cause": e.message}
            )

        logger.info(f"Registered asset {asset.asset_id} -> {object_key}")
        return RegistrationResult(
            asset=asset,
            download_url=build_download_url(self.download_base_url, asset.asset_id, password)
        )

    async def revoke(self, asset_id: str) -> Asset:
        """
        Delete an asset's object and remove it from the catalog.

        Returns:
            The removed asset

        Raises:
            AssetNotFoundError: If the asset id isn't in the catalog
            CatalogUnavailableError: If the catalog can't be loaded
            ObjectStoreException: If the object delete fails (catalog untouched)
            PartialFailureError: If the object was deleted but the catalog was not updated
        """
        catalog = await self.catalog_repo.load_for_update()
        asset = catalog.find(asset_id)
        if asset is None:
            raise AssetNotFoundError(
                message=f"Asset not found: {asset_id}",
                detail={"asset_id": asset_id}
            )

        sharing = [a.asset_id for a in catalog.referencing(asset.cos_object_key) if a.asset_id != asset_id]
        if sharing:
            logger.warning(
                f"Object {asset.cos_object_key} is also referenced by {sharing}; "
                f"those assets will no longer download"
            )

        try:
            await run_in_threadpool(self.object_store.delete_object, asset.cos_object_key)
        except ObjectStoreException as e:
            logger.error(f"Failed to delete object {asset.cos_object_key}: {e.message}")
            raise

        try:
            await self.catalog_repo.save(catalog.without_asset(asset_id))
        except CatalogUnavailableError as e:
            logger.error(f"Object for {asset_id} deleted but catalog update failed")
            raise PartialFailureError(
                message="File deleted but catalog update failed",
                detail={"dangling_asset_id": asset_id, "cause": e.message}
            )

        logger.info(f"Revoked asset {asset_id}")
        return asset

    async def list_assets(self) -> List[Asset]:
        """All catalog entries; empty if the catalog is unavailable."""
        catalog = await self.catalog_repo.load_lenient()
        return list(catalog.assets)

    async def list_objects(self, prefix: str = "") -> List[ObjectInfo]:
        """Objects in the bucket under prefix, excluding the catalog document."""
        objects = await run_in_threadpool(self.object_store.list_objects, prefix)
        return [obj for obj in objects if obj.key != self.catalog_repo.catalog_key]
