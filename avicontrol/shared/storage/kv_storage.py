# avicontrol/shared/storage/kv_storage.py
import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from avicontrol.config.database import Base
from avicontrol.core.exceptions import StorageError
from avicontrol.shared.database.models import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """Get/set/remove síncronos por clave de texto"""

    def __init__(self, engine, session_factory):
        self.engine = engine
        self.session_factory = session_factory
        self.available = self._create_schema()

    def _create_schema(self) -> bool:
        try:
            Base.metadata.create_all(bind=self.engine)
            return True
        except SQLAlchemyError as e:
            # El sistema debe arrancar igual, con colecciones vacías
            logger.error(f"No se pudo inicializar el almacenamiento local: {e}")
            return False

    def get(self, key: str) -> Optional[str]:
        """Leer el valor bruto; None si no existe o si el almacenamiento no responde"""
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Error leyendo clave '{key}': {e}")
            return None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Dict[str, str]) -> None:
        """Guardar varias claves en una sola transacción"""
        db = self.session_factory()
        try:
            for key, value in values.items():
                entry = db.get(KeyValueEntry, key)
                if entry:
                    entry.value = value
                else:
                    db.add(KeyValueEntry(key=key, value=value))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error guardando claves {list(values)}: {e}")
            raise StorageError(f"No se pudo guardar {', '.join(values)} en el almacenamiento local")
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self.session_factory()
        try:
            db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error eliminando clave '{key}': {e}")
            raise StorageError(f"No se pudo eliminar '{key}' del almacenamiento local")
        finally:
            db.close()

    def has(self, key: str) -> bool:
        """Existencia de la clave; un fallo de lectura lanza StorageError"""
        db = self.session_factory()
        try:
            return db.get(KeyValueEntry, key) is not None
        except SQLAlchemyError as e:
            logger.error(f"Error consultando clave '{key}': {e}")
            raise StorageError(f"No se pudo leer '{key}' del almacenamiento local")
        finally:
            db.close()

    def clear(self, prefix: str = "") -> None:
        """Eliminar todas las claves (o las que empiezan con prefix)"""
        db = self.session_factory()
        try:
            query = db.query(KeyValueEntry)
            if prefix:
                query = query.filter(KeyValueEntry.key.startswith(prefix))
            query.delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error limpiando almacenamiento local: {e}")
            raise StorageError("No se pudo limpiar el almacenamiento local")
        finally:
            db.close()
