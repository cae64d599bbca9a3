"""
FastAPI application entry point.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings as default_settings
from .database import create_db_and_tables
from .auth import TokenService
from .responses import register_exception_handlers
from .api import auth, budgets, categories, dashboard, transactions

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one settings object."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Personal Finance Tracker API - Track income, expenses and budgets"
    )
    app.state.settings = settings
    app.state.token_service = TokenService(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, debug=settings.DEBUG)

    # Create database tables on startup
    @app.on_event("startup")
    def on_startup():
        """Create database tables on application startup."""
        create_db_and_tables()
        logger.info("Database tables created")

    # Root endpoint
    @app.get("/", tags=["Root"])
    def read_root():
        """Root endpoint - API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/docs"
        }

    # Health check endpoint
    @app.get("/health", tags=["Root"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
    app.include_router(budgets.router, prefix="/api/budgets", tags=["Budgets"])
    app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

    return app


app = create_app()
