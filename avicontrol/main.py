# avicontrol/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from avicontrol.config.settings import Settings, settings as default_settings
from avicontrol.core.context import AppContext
from avicontrol.core.middleware import setup_middleware
from avicontrol.api.v1.router import api_router

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    mirror_transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    settings = settings or default_settings
    context = AppContext(settings, mirror_transport=mirror_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"{settings.app_name} v{settings.version} iniciando")
        logger.info(f"Almacenamiento local: {settings.database_url}")
        await context.startup()

        yield

        # Shutdown
        await context.shutdown()
        logger.info(f"{settings.app_name} detenido")

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Control de pesaje, lotes y cobranza de pollo con sincronización opcional entre dispositivos",
        lifespan=lifespan
    )
    app.state.context = context

    setup_middleware(app)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "message": f"{settings.app_name} - Control de Pesaje",
            "version": settings.version,
            "status": "running",
            "docs": "/docs",
            "api": "/api/v1"
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy" if context.storage.available else "degraded",
            "version": settings.version,
            "app": settings.app_name,
            "sync": context.replication.state.value
        }

    return app


def run():
    import uvicorn
    uvicorn.run(
        "avicontrol.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug
    )


if __name__ == "__main__":
    run()
