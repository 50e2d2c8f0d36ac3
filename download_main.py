"""
FastAPI application entry point for the Portus download service.

Shares nothing with the admin service except the bucket and the catalog document in it.

Run with:
    uvicorn download_main:app --port 8080
"""
from fastapi import FastAPI

from api.routes.download_router import download_router
from api.routes.health_router import health_router
from core.handlers import register_exception_handlers

app = FastAPI(
    title="Portus Download",
    description="Resolve shared download links and stream the files",
    version="0.1.0"
)

# Register global exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(download_router)
app.include_router(health_router)


@app.get("/")
async def root():
    """Root endpoint - service status"""
    return {
        "message": "Portus Download Service",
        "status": "running",
        "version": "0.1.0"
    }
