"""
FastAPI application entry point for the Portus admin service.

Run with:
    uvicorn admin_main:app --port 3000
"""
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from api.routes.admin_router import admin_router
from api.routes.auth_router import auth_router
from api.routes.health_router import health_router
from config import get_settings
from core.handlers import register_exception_handlers

settings = get_settings()

if not settings.session_secret:
    raise RuntimeError("SESSION_SECRET must be set for the admin service")

app = FastAPI(
    title="Portus Admin",
    description="Upload files, protect them with a password and hand out download links",
    version="0.1.0"
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.session_cookie_secure
)

# Register global exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(health_router)


@app.get("/")
async def root():
    """Root endpoint - service status"""
    return {
        "message": "Portus Admin Portal",
        "status": "running",
        "version": "0.1.0"
    }
