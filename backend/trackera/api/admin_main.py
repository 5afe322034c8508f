"""
Admin application.

Runs separately from the public API so that it can be bound to an internal
port and origin.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import logging

from .. import __version__
from ..database.connection import DatabaseManager
from .error_handlers import register_error_handlers
from .routes import admin, health

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Trackera Admin API",
    description="Cross-tenant administration: tenants, employees and login users.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Admin",
            "description": "Tenant provisioning and user management across tenants"
        }
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ADMIN_ALLOWED_ORIGINS", "http://localhost:3002,http://127.0.0.1:3002").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.on_event("startup")
async def startup_event():
    logger.info("Starting up Trackera Admin API...")
    try:
        DatabaseManager.init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


app.include_router(health.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "trackera.api.admin_main:app",
        host="0.0.0.0",
        port=int(os.getenv("ADMIN_API_PORT", "4000")),
        log_level="info"
    )
