# avicontrol/modules/sync/__init__.py
"""
Módulo de Sincronización - Espejo remoto entre dispositivos

- engine.py: máquina de estados DISABLED/ENABLED, bajada, suscripción y subida
- service.py: conectar/desconectar persistiendo cloudEnabled
- router.py: Endpoints de sincronización (solo ADMIN)
- schemas.py: Modelos de request/response
"""

from .engine import ReplicationEngine
from .service import SyncService

__all__ = [
    "ReplicationEngine",
    "SyncService"
]
