"""
Application entry point. FastAPI app with middleware and routers.
Run: uvicorn main:app --host 0.0.0.0 --port 3000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import accessibility_router, health_router
from core.config import get_settings
from core.errors import register_exception_handlers
from core.middleware import RequestLoggingMiddleware, SecureHeadersMiddleware
from services.credential_service import CredentialResolver
from services.site_config_service import SiteConfigService
from store import ConfigStore, create_store
from utils.logging import get_logger

logger = get_logger(__name__)


def create_app(store: ConfigStore | None = None) -> FastAPI:
    """Factory for FastAPI app. Pass a store to skip building one from settings."""
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: build the store and the two services.
        Shutdown: wait for pending last_used_at updates, close the store.
        """
        app.state.store = store if store is not None else await create_store(settings)
        app.state.credential_resolver = CredentialResolver(app.state.store)
        app.state.site_config_service = SiteConfigService(app.state.store)
        logger.info(
            "startup",
            extra={
                "app": settings.APP_NAME,
                "env": settings.ENVIRONMENT,
                "store": app.state.store.backend,
                "log_level": settings.LOG_LEVEL,
            },
        )
        yield
        await app.state.credential_resolver.drain()
        await app.state.store.close()
        logger.info("shutdown", extra={"app": settings.APP_NAME})

    app = FastAPI(
        title=settings.APP_NAME,
        description="Per-site accessibility configuration API",
        version="1.0.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecureHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", settings.API_KEY_HEADER],
    )

    app.include_router(health_router)
    app.include_router(accessibility_router)
    register_exception_handlers(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run(
        "main:app",
        host=s.HOST,
        port=s.PORT,
        reload=s.ENVIRONMENT == "development",
        log_level=s.LOG_LEVEL.lower(),
    )
