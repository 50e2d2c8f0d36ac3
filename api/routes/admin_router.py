"""
Admin asset management endpoints.
Handles upload, bucket listing, catalog listing and revocation.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from api.schemas.response import (
    AssetListResponse,
    AssetResponse,
    ObjectListResponse,
    ObjectResponse,
    SuccessResponse,
    UploadResponse
)
from core.dependencies import get_asset_registrar, require_admin
from core.exceptions import BadRequestError
from core.utils.logger import setup_logger
from services.asset_service.registrar import AssetRegistrar

logger = setup_logger(__name__)
admin_router = APIRouter(prefix="/api", tags=["admin"])


@admin_router.get("/files", response_model=ObjectListResponse)
async def list_files(
    prefix: str = Query("", description="Only list keys starting with this prefix"),
    admin: str = Depends(require_admin),
    registrar: AssetRegistrar = Depends(get_asset_registrar)
):
    """
    List objects in the bucket, excluding the catalog document.

    Raises:
        ServiceUnavailableError: If the bucket can't be listed (503)
    """
    objects = await registrar.list_objects(prefix)
    logger.info(f"Listed {len(objects)} objects under prefix '{prefix}'")
    return ObjectListResponse(
        files=[
            ObjectResponse(key=o.key, size=o.size, last_modified=o.last_modified)
            for o in objects
        ]
    )


@admin_router.get("/assets", response_model=AssetListResponse)
async def list_assets(
    admin: str = Depends(require_admin),
    registrar: AssetRegistrar = Depends(get_asset_registrar)
):
    """List catalog assets. An unavailable catalog lists as empty."""
    assets = await registrar.list_assets()
    return AssetListResponse(assets=[AssetResponse.model_validate(a) for a in assets])


@admin_router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder_path: Optional[str] = Form(None, alias="folderPath"),
    password: str = Form(""),
    admin: str = Depends(require_admin),
    registrar: AssetRegistrar = Depends(get_asset_registrar)
):
    """
    Upload a file, register it in the catalog and return its download link.

    Form fields:
        file: File payload
        folderPath: Optional folder prefix for the object key
        password: Download token (uppercase letter, digit and special character required)

    Raises:
        BadRequestError: If no file was sent (400)
        WeakPasswordError: If the password fails the policy (400)
        ServiceUnavailableError: If the object write fails (503)
        PartialFailureError: If the object was stored but the catalog wasn't updated (500)
    """
    if file is None or not file.filename:
        raise BadRequestError(message="No file provided")

    logger.info(f"Received upload {file.filename} from {admin}")
    try:
        data = await file.read()
    finally:
        await file.close()

    result = await registrar.register(
        original_file_name=file.filename,
        folder_path=folder_path,
        password=password,
        uploader=admin,
        data=data,
        content_type=file.content_type
    )

    return UploadResponse(
        asset=AssetResponse.model_validate(result.asset),
        download_url=result.download_url
    )


@admin_router.delete("/assets/{asset_id}", response_model=SuccessResponse)
async def delete_asset(
    asset_id: str,
    admin: str = Depends(require_admin),
    registrar: AssetRegistrar = Depends(get_asset_registrar)
):
    """
    Revoke an asset: delete its object, then drop it from the catalog.

    Raises:
        AssetNotFoundError: If the asset isn't in the catalog (404)
        ServiceUnavailableError: If the object delete or catalog load fails (503)
        PartialFailureError: If the object was deleted but the catalog wasn't updated (500)
    """
    logger.info(f"Revoking asset {asset_id} for {admin}")
    await registrar.revoke(asset_id)
    return SuccessResponse()
