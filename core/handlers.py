"""
Centralized exception handlers for FastAPI application.
Maps custom exceptions to HTTP responses.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from core.utils.logger import setup_logger
from core.exceptions import (
    BadRequestError,
    WeakPasswordError,
    AssetNotFoundError,
    ForbiddenError,
    ServiceUnavailableError,
    CatalogUnavailableError,
    PartialFailureError,
    NotAuthenticatedError,
    InvalidCredentialsError,
)

logger = setup_logger(__name__)


def _error_response(status_code: int, error: str, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail if detail is not None else {}
        }
    )


def register_exception_handlers(app: FastAPI):
    """
    Register all exception handlers with the FastAPI app.

    Call this once per app after creating the app instance.

    Args:
        app: FastAPI application instance
    """

    # ========================================================================
    # Client Errors
    # ========================================================================

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        """Handle missing required fields (400)"""
        logger.warning(f"Bad request: {exc.message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, "BadRequest", exc.message, exc.detail)

    @app.exception_handler(WeakPasswordError)
    async def weak_password_handler(request: Request, exc: WeakPasswordError):
        """Handle password policy violations (400)"""
        logger.warning("Rejected upload with weak password")
        return _error_response(status.HTTP_400_BAD_REQUEST, "WeakPassword", exc.message)

    @app.exception_handler(AssetNotFoundError)
    async def asset_not_found_handler(request: Request, exc: AssetNotFoundError):
        """Handle unknown asset ids (404). Body carries no identifiers."""
        logger.warning(f"Asset not found: {exc.message}")
        return _error_response(status.HTTP_404_NOT_FOUND, "NotFound", "Asset not found")

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        """Handle token mismatches (403). Body carries no identifiers."""
        return _error_response(status.HTTP_403_FORBIDDEN, "Forbidden", "Invalid token")

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
        """Handle requests without an admin session (401)"""
        return _error_response(status.HTTP_401_UNAUTHORIZED, "NotAuthenticated", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
        """Handle rejected admin logins (401)"""
        logger.warning("Rejected admin login")
        return _error_response(status.HTTP_401_UNAUTHORIZED, "InvalidCredentials", exc.message)

    # ========================================================================
    # Storage Errors
    # ========================================================================

    @app.exception_handler(CatalogUnavailableError)
    async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError):
        """Handle unreachable or corrupt catalog (503)"""
        logger.error(f"Catalog unavailable: {exc.message}", extra={"detail": exc.detail})
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "ServiceUnavailable",
            "Catalog unavailable. Please try again later."
        )

    @app.exception_handler(ServiceUnavailableError)
    async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError):
        """Handle object store failures (503)"""
        logger.error(f"Storage unavailable: {exc.message}", extra={"detail": exc.detail})
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "ServiceUnavailable",
            "Storage service unavailable. Please try again later."
        )

    @app.exception_handler(PartialFailureError)
    async def partial_failure_handler(request: Request, exc: PartialFailureError):
        """Handle half-applied mutations (500). detail says what needs cleanup."""
        logger.critical(f"Partial failure: {exc.message}", extra={"detail": exc.detail})
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "PartialFailure",
            exc.message,
            exc.detail
        )

    # ========================================================================
    # FastAPI Built-in Exceptions
    # ========================================================================

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors (422)"""
        errors = exc.errors()
        logger.warning(f"Request validation error: {errors}")

        # Convert errors to JSON-serializable format
        error_details = []
        for error in errors:
            error_details.append({
                "loc": error.get("loc", []),
                "msg": error.get("msg", ""),
                "type": error.get("type", "")
            })

        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "ValidationError",
            "Invalid request data.",
            error_details
        )

    # ========================================================================
    # Catch-All Handler (Must be last!)
    # ========================================================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions (500)"""
        logger.exception(f"Unhandled exception: {str(exc)}")
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "InternalServerError",
            "An unexpected error occurred. Please try again later."
        )
