from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import logging

from .. import __version__
from ..database.connection import DatabaseManager
from .error_handlers import register_error_handlers
from .routes import auth, dashboard, employees, health, projects, time_entries, users

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Initialize FastAPI app with metadata
app = FastAPI(
    title="Trackera API",
    description="Multi-tenant time tracking API: tenant-scoped login, users, employees, projects, time entries and dashboard statistics.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Tenant-scoped login, token refresh and current user"
        },
        {
            "name": "Employees",
            "description": "Employee records of the current tenant"
        },
        {
            "name": "Users",
            "description": "Login users of the current tenant"
        },
        {
            "name": "Projects",
            "description": "Project management within the current tenant"
        },
        {
            "name": "Time Entries",
            "description": "Time entry CRUD operations"
        },
        {
            "name": "Dashboard",
            "description": "Dashboard summary and analytics"
        }
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and perform startup tasks."""
    logger.info("Starting up Trackera API...")

    try:
        DatabaseManager.init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Perform cleanup tasks on shutdown."""
    logger.info("Shutting down Trackera API...")


# Include routers
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/v1")
app.include_router(employees.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(projects.router, prefix="/api/v1")
app.include_router(time_entries.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "trackera.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("API_PORT", "8000")),
        reload=True,
        log_level="info"
    )
