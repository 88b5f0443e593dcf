from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import List, Optional

from avicontrol.core.context import AppContext, get_context
from avicontrol.core.exceptions import AuthenticationError, AuthorizationError
from avicontrol.shared.schemas.entities import UserRole
from avicontrol.shared.storage import Collection
from .schemas import Principal

security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    ctx: AppContext = Depends(get_context)
) -> Principal:
    """Obtener usuario actual desde el token"""
    if credentials is None:
        raise AuthenticationError("No autenticado")

    payload = ctx.auth.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    user_id = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError("Payload del token inválido")

    # Se relee el usuario: cambios de rol o jerarquía aplican de inmediato
    user = ctx.store.get_by_id(Collection.USERS, user_id)
    if user is None:
        raise AuthenticationError("Usuario no encontrado")

    return Principal.from_user(user)


def require_roles(allowed_roles: List[UserRole]):
    """Factory para crear dependency que requiere roles específicos"""
    def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed_roles:
            raise AuthorizationError(
                f"Rol '{principal.role.value}' no autorizado. Roles permitidos: {[r.value for r in allowed_roles]}"
            )
        return principal
    return role_checker


def get_admin_principal(principal: Principal = Depends(require_roles([UserRole.ADMIN]))) -> Principal:
    """Dependency para administradores"""
    return principal


def get_manager_principal(
    principal: Principal = Depends(require_roles([UserRole.ADMIN, UserRole.GENERAL]))
) -> Principal:
    """Dependency para administradores y supervisores generales"""
    return principal
