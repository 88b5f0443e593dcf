# avicontrol/modules/sync/engine.py
"""
Replicación opcional de colecciones locales hacia un espejo remoto.

Esquema de instantánea completa: cada cambio local sube la colección entera y
cada notificación remota con datos la reemplaza entera, sin merge por registro. Dos
dispositivos que escriben la misma colección dentro del retardo de
propagación se pisan: gana la última instantánea en llegar.
"""
import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import httpx
from pydantic import ValidationError as PydanticValidationError

from avicontrol.config.settings import Settings
from avicontrol.core.events import EventBus
from avicontrol.core.exceptions import StorageError
from avicontrol.shared.schemas.entities import FirebaseConfig
from avicontrol.shared.services.mirror_client import MirrorClient, MirrorError
from avicontrol.shared.storage.collection_store import (
    Collection, CollectionStore, COLLECTION_MODELS
)
from .schemas import SyncResult, SyncState, SyncStatusResponse

logger = logging.getLogger(__name__)

REPLICATED_COLLECTIONS = [Collection.USERS, Collection.BATCHES, Collection.ORDERS]


def _error_message(error: Exception) -> str:
    if isinstance(error, MirrorError):
        return error.message
    if isinstance(error, StorageError):
        return f"Almacenamiento local: {error.detail}"
    return str(error)


def normalize_snapshot(data: Any) -> List[Any]:
    """
    Convertir el valor remoto en lista.

    Firebase guarda los arreglos como objetos con claves "0", "1"... y
    devuelve huecos como null.
    """
    if data is None:
        return []
    if isinstance(data, list):
        return [x for x in data if x is not None]
    if isinstance(data, dict):
        keys = list(data.keys())
        if all(str(k).isdigit() for k in keys):
            keys.sort(key=lambda k: int(k))
        return [data[k] for k in keys if data[k] is not None]
    return []


class ReplicationEngine:
    """Estados DISABLED / ENABLED sobre un MirrorClient por dispositivo"""

    def __init__(
        self,
        store: CollectionStore,
        bus: EventBus,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.store = store
        self.settings = settings
        self.transport = transport
        self.state = SyncState.DISABLED
        self.credentials: Optional[FirebaseConfig] = None
        self.last_pull_at: Optional[datetime] = None
        self.last_push_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._client: Optional[MirrorClient] = None
        self._listeners: Dict[Collection, asyncio.Task] = {}
        self._pending: Set[asyncio.Task] = set()
        self._applying_remote: Optional[Collection] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        for collection in REPLICATED_COLLECTIONS:
            bus.subscribe(collection.value, partial(self._on_local_change, collection))

    @property
    def enabled(self) -> bool:
        return self.state == SyncState.ENABLED

    # ==================== CREDENCIALES ====================

    @staticmethod
    def validate_credentials(credentials: FirebaseConfig) -> Optional[SyncResult]:
        """Retorna el fallo si falta un campo obligatorio; None si son válidas"""
        if not credentials.api_key.strip():
            return SyncResult(ok=False, message="Falta el campo apiKey", field="apiKey")
        if not credentials.project_id.strip():
            return SyncResult(ok=False, message="Falta el campo projectId", field="projectId")
        url = credentials.database_url.strip()
        if not url:
            return SyncResult(ok=False, message="Falta el campo databaseURL", field="databaseURL")
        if not url.startswith("https://"):
            return SyncResult(
                ok=False,
                message="El campo databaseURL debe comenzar con https://",
                field="databaseURL"
            )
        return None

    def _build_client(self, credentials: FirebaseConfig) -> MirrorClient:
        return MirrorClient(
            database_url=credentials.database_url.strip(),
            api_key=credentials.api_key.strip(),
            timeout=self.settings.mirror_timeout,
            sign_in_anonymously=self.settings.mirror_sign_in_anonymously,
            auth_url=self.settings.mirror_auth_url,
            transport=self.transport
        )

    # ==================== TRANSICIONES ====================

    async def enable(self, credentials: FirebaseConfig) -> SyncResult:
        invalid = self.validate_credentials(credentials)
        if invalid:
            logger.warning(f"Sincronización no activada: {invalid.message}")
            return invalid

        # Descartar la conexión anterior para no duplicar oyentes
        await self._teardown()
        self.state = SyncState.DISABLED
        self.credentials = None
        self._loop = asyncio.get_running_loop()
        client = self._build_client(credentials)

        try:
            for collection in REPLICATED_COLLECTIONS:
                await self._initial_pull(client, collection)
        except (MirrorError, StorageError) as e:
            await client.close()
            self.last_error = _error_message(e)
            logger.error(f"Error activando sincronización: {self.last_error}")
            return SyncResult(ok=False, message=self.last_error)

        self._client = client
        self.credentials = credentials
        self.state = SyncState.ENABLED
        self.last_error = None

        if self.settings.mirror_listen:
            for collection in REPLICATED_COLLECTIONS:
                self._listeners[collection] = self._loop.create_task(self._listen(collection))

        logger.info(f"Sincronización activada con el proyecto '{credentials.project_id}'")
        return SyncResult(ok=True, message="Sincronización activada")

    async def disable(self) -> SyncResult:
        """Detener oyentes y subidas; los datos locales se conservan"""
        await self._teardown()
        self.state = SyncState.DISABLED
        self.credentials = None
        logger.info("Sincronización desactivada")
        return SyncResult(ok=True, message="Sincronización desactivada")

    async def _teardown(self) -> None:
        listeners = list(self._listeners.values())
        self._listeners.clear()
        for task in listeners:
            task.cancel()
        if listeners:
            await asyncio.gather(*listeners, return_exceptions=True)

        await self.wait_idle()
        if self._client is not None:
            await self._client.close()
            self._client = None

    # ==================== BAJADA ====================

    def _parse_snapshot(self, collection: Collection, data: Any) -> list:
        model = COLLECTION_MODELS[collection]
        items = []
        for raw in normalize_snapshot(data):
            try:
                items.append(model.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(f"Registro remoto inválido descartado en '{collection.value}': {e.error_count()} errores")
        return items

    def _apply_remote(self, collection: Collection, items: list) -> None:
        # Mientras se aplica, el cambio local resultante no se vuelve a subir
        self._applying_remote = collection
        try:
            self.store.replace_all(collection, items)
        finally:
            self._applying_remote = None
        self.last_pull_at = datetime.now()

    async def _initial_pull(self, client: MirrorClient, collection: Collection) -> None:
        data = await client.get_snapshot(collection.value)
        items = self._parse_snapshot(collection, data)
        if items:
            self._apply_remote(collection, items)
            logger.info(f"'{collection.value}' descargado del espejo: {len(items)} registros")
            return

        # Espejo vacío: el dispositivo local siembra la colección
        local = self.store.get_all(collection)
        if local:
            await client.put_snapshot(collection.value, [x.to_storage() for x in local])
            self.last_push_at = datetime.now()
            logger.info(f"Espejo vacío para '{collection.value}', sembrado con {len(local)} registros locales")

    async def _listen(self, collection: Collection) -> None:
        client = self._client
        try:
            async for event, data in client.listen(collection.value):
                if event in ("put", "patch"):
                    await self._handle_remote_event(client, collection, event, data)
                elif event in ("cancel", "auth_revoked"):
                    self.last_error = f"El espejo canceló la suscripción a '{collection.value}' ({event})"
                    logger.warning(self.last_error)
                    break
            logger.info(f"Suscripción a '{collection.value}' finalizada")
        except (MirrorError, StorageError) as e:
            self.last_error = _error_message(e)
            logger.error(f"Error en la suscripción a '{collection.value}': {self.last_error}")

    async def _handle_remote_event(self, client: MirrorClient, collection: Collection, event: str, data: Any) -> None:
        """
        Cada notificación con datos reemplaza la colección local completa.

        Una instantánea vacía (p.ej. tras borrar el espejo) no vacía la
        colección local, igual que al activar la sincronización.
        """
        if event == "put" and isinstance(data, dict) and data.get("path") == "/":
            snapshot = data.get("data")
        else:
            # Cambio parcial: se relee la instantánea completa
            snapshot = await client.get_snapshot(collection.value)
        items = self._parse_snapshot(collection, snapshot)
        if not items:
            logger.info(f"Espejo vacío para '{collection.value}', se conservan los datos locales")
            return
        self._apply_remote(collection, items)
        logger.info(f"Cambio remoto aplicado en '{collection.value}': {len(items)} registros")

    # ==================== SUBIDA ====================

    def _on_local_change(self, collection: Collection) -> None:
        if not self.enabled or self._applying_remote == collection:
            return
        self._schedule(partial(self._push, collection))

    def _schedule(self, factory: Callable[[], Awaitable[Any]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._start_task(factory)
        elif self._loop is not None and self._loop.is_running():
            # Desde otro hilo: la tarea se crea dentro del loop para que
            # wait_idle y el cierre del cliente la esperen
            self._loop.call_soon_threadsafe(self._start_task, factory)
        else:
            logger.warning("Sin event loop activo: el cambio local no se subió al espejo")

    def _start_task(self, factory: Callable[[], Awaitable[Any]]) -> None:
        task = asyncio.get_running_loop().create_task(factory())
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.last_error = str(error)
            logger.error(f"Error inesperado subiendo al espejo: {error!r}")

    async def _push(self, collection: Collection) -> SyncResult:
        client = self._client
        if not self.enabled or client is None:
            return SyncResult(ok=False, message="La sincronización no está activa")

        items = self.store.get_all(collection)
        try:
            await client.put_snapshot(collection.value, [x.to_storage() for x in items])
        except MirrorError as e:
            self.last_error = e.message
            logger.error(f"Error subiendo '{collection.value}': {e.message}")
            return SyncResult(ok=False, message=e.message)

        self.last_push_at = datetime.now()
        logger.info(f"'{collection.value}' subido al espejo: {len(items)} registros")
        return SyncResult(ok=True, message=f"'{collection.value}' sincronizado")

    async def push_all_collections(self) -> SyncResult:
        """Subir todas las colecciones locales (recuperación manual)"""
        if not self.enabled:
            return SyncResult(ok=False, message="La sincronización no está activa")
        for collection in REPLICATED_COLLECTIONS:
            result = await self._push(collection)
            if not result.ok:
                return result
        return SyncResult(ok=True, message="Datos locales subidos al espejo")

    async def wipe_remote(self, confirm: bool = False) -> SyncResult:
        """Borrar la raíz del espejo. Irreversible: exige confirmación explícita"""
        if not confirm:
            return SyncResult(ok=False, message="Se requiere confirmación explícita para borrar los datos remotos")
        if not self.enabled or self._client is None:
            return SyncResult(ok=False, message="La sincronización no está activa")
        try:
            await self._client.put_snapshot("", None)
        except MirrorError as e:
            self.last_error = e.message
            logger.error(f"Error borrando el espejo remoto: {e.message}")
            return SyncResult(ok=False, message=e.message)

        logger.warning(f"Espejo remoto borrado (proyecto '{self.credentials.project_id}')")
        return SyncResult(ok=True, message="Datos remotos eliminados")

    async def test_connection(self, candidate: FirebaseConfig) -> SyncResult:
        """Probar credenciales sin cambiar de estado"""
        invalid = self.validate_credentials(candidate)
        if invalid:
            return invalid

        client = self._build_client(candidate)
        try:
            await client.check()
            return SyncResult(ok=True, message="Conexión exitosa")
        except MirrorError as e:
            logger.warning(f"Prueba de conexión fallida: {e.message}")
            return SyncResult(ok=False, message=e.message)
        finally:
            await client.close()

    async def wait_idle(self) -> None:
        """Esperar las subidas en curso"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def status(self) -> SyncStatusResponse:
        return SyncStatusResponse(
            state=self.state,
            project_id=self.credentials.project_id if self.credentials else None,
            database_url=self.credentials.database_url if self.credentials else None,
            listening=sum(1 for t in self._listeners.values() if not t.done()),
            pending_pushes=len(self._pending),
            last_pull_at=self.last_pull_at,
            last_push_at=self.last_push_at,
            last_error=self.last_error
        )
