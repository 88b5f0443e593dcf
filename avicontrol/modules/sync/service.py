# avicontrol/modules/sync/service.py
import logging

from avicontrol.shared.schemas.entities import FirebaseConfig
from avicontrol.shared.storage import CollectionStore
from .engine import ReplicationEngine
from .schemas import SyncResult, SyncStatusResponse

logger = logging.getLogger(__name__)


class SyncService:
    def __init__(self, store: CollectionStore, engine: ReplicationEngine):
        self.store = store
        self.engine = engine

    def status(self) -> SyncStatusResponse:
        return self.engine.status()

    async def connect(self) -> SyncResult:
        """Activar con las credenciales guardadas y recordar cloudEnabled"""
        config = self.store.get_config()
        result = await self.engine.enable(config.firebase_config)
        if result.ok and not config.cloud_enabled:
            self.store.save_config(config.model_copy(update={"cloud_enabled": True}))
        return result

    async def disconnect(self) -> SyncResult:
        result = await self.engine.disable()
        config = self.store.get_config()
        if config.cloud_enabled:
            self.store.save_config(config.model_copy(update={"cloud_enabled": False}))
        return result

    async def test_connection(self, candidate: FirebaseConfig) -> SyncResult:
        return await self.engine.test_connection(candidate)

    async def push_all(self) -> SyncResult:
        return await self.engine.push_all_collections()

    async def wipe_remote(self, confirm: bool) -> SyncResult:
        return await self.engine.wipe_remote(confirm)
