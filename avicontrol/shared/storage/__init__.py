"""
Almacenamiento local

- kv_storage.py: primitiva clave-valor síncrona sobre SQLAlchemy
- collection_store.py: colecciones con id (usuarios, lotes, pedidos) y configuración
"""

from .kv_storage import KeyValueStorage
from .collection_store import CollectionStore, Collection

__all__ = [
    "KeyValueStorage",
    "CollectionStore",
    "Collection"
]
