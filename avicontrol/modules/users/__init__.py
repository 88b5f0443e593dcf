# avicontrol/modules/users/__init__.py
"""
Módulo de Usuarios - Gestión de Accesos

- Alta y edición de usuarios por ADMIN, o por un GENERAL para sus subordinados
- Modos de pesaje permitidos por usuario
- Nadie puede eliminarse a sí mismo

Arquitectura:
- router.py: Endpoints de usuarios
- service.py: Reglas de jerarquía y validación
- repository.py: Acceso a la colección de usuarios
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import UsersService
from .repository import UsersRepository

__all__ = [
    "router",
    "UsersService",
    "UsersRepository"
]
