"""
Administrator session endpoints.
"""
from fastapi import APIRouter, Depends, Request

from api.schemas.request import LoginRequest
from api.schemas.response import SuccessResponse
from config import Settings, get_settings
from core.dependencies import SESSION_AUTH_KEY, SESSION_EMAIL_KEY, credentials_match
from core.exceptions import InvalidCredentialsError
from core.utils.logger import setup_logger

logger = setup_logger(__name__)
auth_router = APIRouter(prefix="", tags=["auth"])


@auth_router.post("/login", response_model=SuccessResponse)
async def login(
    body: LoginRequest,
    request: Request,
    settings: Settings = Depends(get_settings)
):
    """
    Start an administrator session.

    Raises:
        InvalidCredentialsError: If email or password is wrong (401)
    """
    if not credentials_match(body.email, body.password, settings):
        raise InvalidCredentialsError(message="Invalid credentials")

    request.session[SESSION_AUTH_KEY] = True
    request.session[SESSION_EMAIL_KEY] = body.email
    logger.info(f"Administrator {body.email} logged in")
    return SuccessResponse()


@auth_router.get("/logout", response_model=SuccessResponse)
async def logout(request: Request):
    """End the administrator session."""
    request.session.clear()
    return SuccessResponse()
