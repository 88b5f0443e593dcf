# avicontrol/shared/storage/collection_store.py
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError as PydanticValidationError

from avicontrol.core.events import EventBus
from avicontrol.core.exceptions import StorageError
from avicontrol.shared.schemas.entities import (
    AppConfig, Batch, ClientOrder, User, DEFAULT_ADMIN
)
from .kv_storage import KeyValueStorage

logger = logging.getLogger(__name__)

CONFIG_CHANNEL = "config"


class Collection(str, Enum):
    USERS = "users"
    BATCHES = "batches"
    ORDERS = "orders"


COLLECTION_MODELS = {
    Collection.USERS: User,
    Collection.BATCHES: Batch,
    Collection.ORDERS: ClientOrder,
}


class CollectionStore:
    """
    Colecciones persistidas como blobs JSON independientes.

    Toda escritura se guarda primero y luego se notifica por el canal de la
    colección. Datos corruptos se leen como colección vacía (o configuración
    por defecto) y se sanean en la siguiente escritura.
    """

    def __init__(self, storage: KeyValueStorage, bus: EventBus, key_prefix: str = "avi_"):
        self.storage = storage
        self.bus = bus
        self.key_prefix = key_prefix
        self.initialize()

    # ==================== CLAVES ====================

    def key_for(self, collection: Collection) -> str:
        return f"{self.key_prefix}{collection.value}"

    @property
    def config_key(self) -> str:
        return f"{self.key_prefix}config"

    # ==================== INICIALIZACIÓN ====================

    def initialize(self) -> None:
        """Sembrar valores por defecto en el primer arranque"""
        defaults: Dict[str, Any] = {
            self.key_for(Collection.USERS): [DEFAULT_ADMIN.to_storage()],
            self.key_for(Collection.BATCHES): [],
            self.key_for(Collection.ORDERS): [],
            self.config_key: AppConfig().to_storage(),
        }
        try:
            # Si no se puede leer no se siembra: se pisarían datos existentes
            missing = {
                key: json.dumps(value)
                for key, value in defaults.items()
                if not self.storage.has(key)
            }
            if not missing:
                return
            self.storage.set_many(missing)
            logger.info(f"Valores por defecto sembrados: {', '.join(missing)}")
        except StorageError as e:
            logger.error(f"Arrancando sin valores por defecto: {e.detail}")

    def reset(self) -> None:
        """Borrar todos los datos locales y volver a los valores por defecto"""
        self.storage.clear(self.key_prefix)
        self.initialize()
        for collection in Collection:
            self.bus.publish(collection.value)
        self.bus.publish(CONFIG_CHANNEL)

    # ==================== LECTURA ====================

    def _read(self, key: str) -> Optional[Any]:
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Datos corruptos en '{key}', se usará el valor por defecto: {e}")
            return None

    def get_all(self, collection: Collection) -> List[BaseModel]:
        """Entidades en orden de inserción"""
        data = self._read(self.key_for(collection))
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"'{self.key_for(collection)}' no es una lista, se ignora")
            return []

        model = COLLECTION_MODELS[collection]
        items = []
        for raw_item in data:
            try:
                items.append(model.model_validate(raw_item))
            except PydanticValidationError as e:
                logger.warning(f"Registro inválido descartado en '{collection.value}': {e.error_count()} errores")
        return items

    def get_by_id(self, collection: Collection, entity_id: str) -> Optional[BaseModel]:
        return next((x for x in self.get_all(collection) if x.id == entity_id), None)

    def get_config(self) -> AppConfig:
        data = self._read(self.config_key)
        if not isinstance(data, dict):
            return AppConfig()
        try:
            return AppConfig.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Configuración inválida, se usará la de fábrica: {e.error_count()} errores")
            return AppConfig()

    # ==================== ESCRITURA ====================

    def _serialize(self, items: Sequence[BaseModel]) -> str:
        return json.dumps([item.to_storage() for item in items])

    def upsert(self, collection: Collection, entity: BaseModel) -> None:
        """Reemplazar en su posición si el id existe, si no agregar al final"""
        items = self.get_all(collection)
        idx = next((i for i, x in enumerate(items) if x.id == entity.id), None)
        if idx is not None:
            items[idx] = entity
        else:
            items.append(entity)
        self.storage.set(self.key_for(collection), self._serialize(items))
        self.bus.publish(collection.value)

    def delete_by_id(self, collection: Collection, entity_id: str) -> None:
        items = [x for x in self.get_all(collection) if x.id != entity_id]
        self.storage.set(self.key_for(collection), self._serialize(items))
        self.bus.publish(collection.value)

    def replace_all(self, collection: Collection, entities: Sequence[BaseModel]) -> None:
        """Sobrescribir la colección completa (usado por la replicación)"""
        self.storage.set(self.key_for(collection), self._serialize(entities))
        self.bus.publish(collection.value)

    def delete_batch(self, batch_id: str) -> int:
        """Eliminar el lote y en cascada sus pedidos; retorna pedidos eliminados"""
        batches = [b for b in self.get_all(Collection.BATCHES) if b.id != batch_id]
        orders = self.get_all(Collection.ORDERS)
        kept_orders = [o for o in orders if o.batch_id != batch_id]

        self.storage.set_many({
            self.key_for(Collection.BATCHES): self._serialize(batches),
            self.key_for(Collection.ORDERS): self._serialize(kept_orders),
        })
        self.bus.publish(Collection.BATCHES.value)
        self.bus.publish(Collection.ORDERS.value)
        return len(orders) - len(kept_orders)

    def save_config(self, config: AppConfig) -> None:
        self.storage.set(self.config_key, json.dumps(config.to_storage()))
        self.bus.publish(CONFIG_CHANNEL)
