# avicontrol/core/context.py
import logging
from typing import Optional

import httpx
from fastapi import Request

from avicontrol.config.database import build_engine, build_session_factory
from avicontrol.config.settings import Settings
from avicontrol.core.auth.service import AuthService
from avicontrol.core.events import EventBus
from avicontrol.modules.sync.engine import ReplicationEngine
from avicontrol.shared.services.aggregator import DomainAggregator
from avicontrol.shared.storage import CollectionStore, KeyValueStorage

logger = logging.getLogger(__name__)


class AppContext:
    """Dependencias compartidas del proceso: almacenamiento, eventos, replicación"""

    def __init__(
        self,
        settings: Settings,
        mirror_transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self.db_engine = build_engine(settings.database_url, echo=settings.debug)
        self.storage = KeyValueStorage(self.db_engine, build_session_factory(self.db_engine))
        self.bus = EventBus()
        self.store = CollectionStore(self.storage, self.bus, settings.storage_key_prefix)
        self.aggregator = DomainAggregator(settings.crate_capacity, settings.settled_epsilon)
        self.auth = AuthService(settings)
        self.replication = ReplicationEngine(self.store, self.bus, settings, transport=mirror_transport)

    async def startup(self) -> None:
        config = self.store.get_config()
        if config.cloud_enabled:
            result = await self.replication.enable(config.firebase_config)
            if not result.ok:
                # Se continúa en modo solo local
                logger.error(f"No se pudo reanudar la sincronización: {result.message}")

    async def shutdown(self) -> None:
        await self.replication.disable()
        self.db_engine.dispose()


def get_context(request: Request) -> AppContext:
    """Dependency: contexto colgado de app.state"""
    return request.app.state.context
