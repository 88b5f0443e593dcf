# avicontrol/modules/configuration/__init__.py
"""
Módulo de Configuración - Identidad, periféricos y credenciales del espejo

Arquitectura:
- router.py: Endpoints de configuración
- service.py: Lectura, guardado y restablecimiento
- repository.py: Acceso a la configuración persistida
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import ConfigurationService
from .repository import ConfigurationRepository

__all__ = [
    "router",
    "ConfigurationService",
    "ConfigurationRepository"
]
