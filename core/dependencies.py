"""
Dependency injection for FastAPI routes.
Provides the object store, catalog repository and service instances.
"""
import hmac
from functools import lru_cache

from fastapi import Depends, Request

from catalog.repositories import CatalogRepository
from config import Settings, get_settings
from core.aws.object_store import ObjectStore
from core.aws.s3_client import get_object_store
from core.exceptions import NotAuthenticatedError
from services.asset_service.registrar import AssetRegistrar
from services.transfer_service.audit import AuditRecorder
from services.transfer_service.gateway import TransferGateway

SESSION_AUTH_KEY = "authenticated"
SESSION_EMAIL_KEY = "email"


def get_catalog_repository(
    object_store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_settings)
) -> CatalogRepository:
    """
    Dependency to provide CatalogRepository instance.

    A new repository is built per request; it holds no cached catalog.
    """
    return CatalogRepository(
        object_store,
        catalog_key=settings.catalog_key,
        fetch_timeout=settings.catalog_fetch_timeout
    )


def get_asset_registrar(
    object_store: ObjectStore = Depends(get_object_store),
    catalog_repo: CatalogRepository = Depends(get_catalog_repository),
    settings: Settings = Depends(get_settings)
) -> AssetRegistrar:
    """
    Dependency to provide AssetRegistrar instance.

    Usage:
        @router.post("/api/upload")
        async def upload(registrar: AssetRegistrar = Depends(get_asset_registrar)):
            result = await registrar.register(...)
    """
    return AssetRegistrar(object_store, catalog_repo, settings.download_service_url)


@lru_cache()
def get_audit_recorder() -> AuditRecorder:
    """Process-wide audit recorder."""
    return AuditRecorder()


def get_transfer_gateway(
    object_store: ObjectStore = Depends(get_object_store),
    catalog_repo: CatalogRepository = Depends(get_catalog_repository),
    audit: AuditRecorder = Depends(get_audit_recorder),
    settings: Settings = Depends(get_settings)
) -> TransferGateway:
    """Dependency to provide TransferGateway instance."""
    return TransferGateway(
        object_store,
        catalog_repo,
        audit,
        content_type=settings.download_content_type,
        chunk_size=settings.download_chunk_size
    )


def credentials_match(email: str, password: str, settings: Settings) -> bool:
    """Constant-time check against the configured administrator credentials."""
    if not settings.admin_email or not settings.admin_password:
        return False
    email_ok = hmac.compare_digest(email.encode("utf-8"), settings.admin_email.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    return email_ok and password_ok


def require_admin(request: Request) -> str:
    """
    Dependency guarding admin routes.

    Returns:
        Email of the logged-in administrator

    Raises:
        NotAuthenticatedError: If the session is not authenticated
    """
    if not request.session.get(SESSION_AUTH_KEY):
        raise NotAuthenticatedError(message="Authentication required")
    return request.session.get(SESSION_EMAIL_KEY, "")
