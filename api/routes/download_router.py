"""
Public download endpoint.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from core.dependencies import get_transfer_gateway
from core.utils.logger import setup_logger
from services.transfer_service.gateway import TransferGateway

logger = setup_logger(__name__)
download_router = APIRouter(prefix="", tags=["download"])


@download_router.get("/download/{asset_id}")
async def download_asset(
    asset_id: str,
    token: str = Query("", description="Download token from the shared link"),
    gateway: TransferGateway = Depends(get_transfer_gateway)
):
    """
    Stream an asset to the caller as an attachment.

    Raises:
        BadRequestError: If the token is missing (400)
        AssetNotFoundError: If the asset doesn't exist (404)
        ForbiddenError: If the token is wrong (403)
        ServiceUnavailableError: If the catalog or object can't be read (503)
    """
    stream = await gateway.resolve_and_stream(asset_id, token)
    logger.info(f"Streaming asset {asset_id}")
    return StreamingResponse(
        stream,
        media_type=stream.content_type,
        headers=stream.headers
    )
