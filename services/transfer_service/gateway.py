"""
Transfer gateway.
Resolves a download locator against the catalog, checks the token and
streams the asset bytes back.

A single attempt moves through
    RECEIVED -> VALIDATED -> AUTHORIZED -> STREAMING -> COMPLETED | ABORTED
and is rejected from RECEIVED (bad request, not found, catalog unavailable)
or VALIDATED (forbidden). There is no retry or resume within an attempt.
"""
import asyncio
import hmac
from enum import Enum
from typing import AsyncIterator, Dict, Optional

from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from catalog.models.asset import Asset
from catalog.repositories import CatalogRepository
from core.aws.object_store import ObjectStore, ObjectStream
from core.exceptions import (
    AssetNotFoundError,
    BadRequestError,
    ForbiddenError,
    ObjectStoreException,
    ServiceUnavailableError
)
from core.utils.helpers import build_content_disposition
from core.utils.logger import setup_logger
from services.transfer_service.audit import AuditRecorder, TransferOutcome

logger = setup_logger(__name__)


class TransferState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    AUTHORIZED = "authorized"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    REJECTED = "rejected"


_TERMINAL_STATES = {TransferState.COMPLETED, TransferState.ABORTED, TransferState.REJECTED}


class TransferAttempt:
    """State of one download request"""

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        self.state = TransferState.RECEIVED
        self.bytes_sent = 0

    @property
    def finished(self) -> bool:
        return self.state in _TERMINAL_STATES

    def advance(self, state: TransferState) -> None:
        if self.finished:
            raise RuntimeError(f"Transfer for {self.asset_id} already {self.state.value}")
        logger.debug(f"Transfer {self.asset_id}: {self.state.value} -> {state.value}")
        self.state = state


def tokens_match(presented: str, expected: str) -> bool:
    """Constant-time token comparison."""
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


class DownloadStream:
    """
    An authorized, opened download.

    Iterate it once to relay the bytes. A read failure after the first chunk
    is re-raised so the transport drops the connection; the response status
    has already been sent and cannot change.
    """

    def __init__(
        self,
        attempt: TransferAttempt,
        asset: Asset,
        content_type: str,
        object_stream: ObjectStream,
        audit: AuditRecorder
    ):
        self.attempt = attempt
        self.asset = asset
        self.content_type = content_type
        self._object_stream = object_stream
        self._audit = audit

    @property
    def file_name(self) -> str:
        return self.asset.file_name

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Disposition": build_content_disposition(self.asset.file_name)}

    def _abort(self, reason: str) -> None:
        self.attempt.advance(TransferState.ABORTED)
        self._audit.record(self.attempt.asset_id, TransferOutcome.ABORTED)
        logger.error(
            f"Download of {self.attempt.asset_id} aborted after "
            f"{self.attempt.bytes_sent} bytes: {reason}"
        )

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.attempt.advance(TransferState.STREAMING)
        try:
            async for chunk in iterate_in_threadpool(self._object_stream.iter_chunks()):
                yield chunk
                self.attempt.bytes_sent += len(chunk)
        except ObjectStoreException as e:
            self._abort(e.message)
            raise
        except (asyncio.CancelledError, GeneratorExit):
            self._abort("client disconnected")
            raise
        else:
            self.attempt.advance(TransferState.COMPLETED)
            self._audit.record(self.attempt.asset_id, TransferOutcome.COMPLETED)
            logger.info(f"Download of {self.attempt.asset_id} completed ({self.attempt.bytes_sent} bytes)")
        finally:
            self._object_stream.close()


class TransferGateway:
    """Read-side resolution of download locators"""

    def __init__(
        self,
        object_store: ObjectStore,
        catalog_repo: CatalogRepository,
        audit: AuditRecorder,
        content_type: str = "application/pdf",
        chunk_size: int = 64 * 1024
    ):
        self.object_store = object_store
        self.catalog_repo = catalog_repo
        self.audit = audit
        self.content_type = content_type
        self.chunk_size = chunk_size

    async def resolve_and_stream(self, asset_id: Optional[str], token: Optional[str]) -> DownloadStream:
        """
        Authorize a download and open the asset's object.

        Args:
            asset_id: Asset identifier from the locator
            token: Token presented by the caller

        Returns:
            DownloadStream ready to be relayed

        Raises:
            BadRequestError: If asset_id or token is empty
            CatalogUnavailableError: If the catalog can't be loaded
            AssetNotFoundError: If the asset isn't in the catalog
            ForbiddenError: If the token doesn't match
            ServiceUnavailableError: If the object can't be opened
        """
        attempt = TransferAttempt(asset_id or "")

        if not asset_id or not token:
            attempt.advance(TransferState.REJECTED)
            self.audit.record(attempt.asset_id, TransferOutcome.BAD_REQUEST)
            raise BadRequestError(message="Missing asset ID or token")

        try:
            catalog = await self.catalog_repo.load_strict()
        except ServiceUnavailableError:
            attempt.advance(TransferState.REJECTED)
            self.audit.record(asset_id, TransferOutcome.UNAVAILABLE)
            raise

        asset = catalog.find(asset_id)
        if asset is None:
            attempt.advance(TransferState.REJECTED)
            self.audit.record(asset_id, TransferOutcome.NOT_FOUND)
            raise AssetNotFoundError(message="Asset not found")
        attempt.advance(TransferState.VALIDATED)

        if not tokens_match(token, asset.password):
            attempt.advance(TransferState.REJECTED)
            self.audit.record(asset_id, TransferOutcome.FORBIDDEN)
            raise ForbiddenError(message="Invalid token")
        attempt.advance(TransferState.AUTHORIZED)

        try:
            object_stream = await run_in_threadpool(
                self.object_store.open_object_stream,
                asset.cos_object_key,
                self.chunk_size
            )
        except ObjectStoreException as e:
            attempt.advance(TransferState.ABORTED)
            self.audit.record(asset_id, TransferOutcome.UNAVAILABLE)
            logger.error(f"Failed to open object for {asset_id}: {e.message}")
            raise ServiceUnavailableError(message="Download failed")

        return DownloadStream(attempt, asset, self.content_type, object_stream, self.audit)
