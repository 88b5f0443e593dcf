# avicontrol/modules/batches/__init__.py
"""
Módulo de Lotes - Campañas de venta con meta de jabas

- Alta, edición, cierre y reapertura de lotes
- Eliminación en cascada de los pedidos del lote
- Totales del lote y porcentaje de avance sobre la meta
"""

from .router import router
from .service import BatchesService
from .repository import BatchesRepository

__all__ = [
    "router",
    "BatchesService",
    "BatchesRepository"
]
