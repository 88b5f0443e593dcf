# avicontrol/modules/orders/__init__.py
"""
Módulo de Pedidos - Pesaje y Cobranza por Cliente

- Registro de pesadas: jabas llenas (bruto), vacías (tara) y merma
- Límites de jabas por cliente y tara contra bruto
- Liquidación (contado o crédito) y abonos
- Resumen de cobranza

Arquitectura:
- router.py: Endpoints de pedidos
- service.py: Invariantes de pesaje y liquidación
- repository.py: Acceso a la colección de pedidos
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import OrdersService
from .repository import OrdersRepository

__all__ = [
    "router",
    "OrdersService",
    "OrdersRepository"
]
