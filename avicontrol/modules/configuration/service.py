# avicontrol/modules/configuration/service.py
import logging

from avicontrol.core.exceptions import ValidationError
from avicontrol.modules.sync.engine import ReplicationEngine
from avicontrol.shared.schemas.entities import AppConfig
from avicontrol.shared.storage import CollectionStore
from .repository import ConfigurationRepository
from .schemas import ConfigUpdateRequest, PublicConfigResponse

logger = logging.getLogger(__name__)


class ConfigurationService:
    def __init__(self, store: CollectionStore, replication: ReplicationEngine):
        self.repository = ConfigurationRepository(store)
        self.replication = replication

    def get_config(self) -> AppConfig:
        return self.repository.get_config()

    def get_public_config(self) -> PublicConfigResponse:
        config = self.repository.get_config()
        return PublicConfigResponse(**config.model_dump(include=set(PublicConfigResponse.model_fields)))

    def save_config(self, data: ConfigUpdateRequest) -> AppConfig:
        config = self.repository.get_config()
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if data.firebase_config is not None:
            changes["firebase_config"] = data.firebase_config

        updated = config.model_copy(update=changes)
        self.repository.save_config(updated)
        logger.info(f"Configuración guardada: {', '.join(changes) or 'sin cambios'}")
        return updated

    async def reset(self, confirm: bool) -> AppConfig:
        """Borrar todos los datos locales; el espejo remoto no se toca"""
        if not confirm:
            raise ValidationError("Se requiere confirmación explícita para borrar los datos locales")
        # Primero se corta la replicación para no subir colecciones vacías
        await self.replication.disable()
        self.repository.reset()
        logger.warning("Datos locales restablecidos a los valores de fábrica")
        return self.repository.get_config()
