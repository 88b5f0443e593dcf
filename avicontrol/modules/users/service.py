# avicontrol/modules/users/service.py
import logging
from typing import List

from avicontrol.core.auth import scope
from avicontrol.core.auth.schemas import Principal, UserResponse
from avicontrol.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from avicontrol.shared.schemas.entities import ALL_MODES, User, UserRole, new_id
from avicontrol.shared.storage import CollectionStore
from .repository import UsersRepository
from .schemas import UserCreateRequest, UserUpdateRequest

logger = logging.getLogger(__name__)


class UsersService:
    def __init__(self, store: CollectionStore):
        self.repository = UsersRepository(store)

    def _visible_user(self, principal: Principal, user_id: str) -> User:
        users = self.repository.get_users()
        user = next((u for u in users if u.id == user_id), None)
        if user is None or not scope.can_see(principal, user, users):
            raise NotFoundError(f"Usuario {user_id} no encontrado")
        return user

    def _check_unique_username(self, username: str, exclude_id: str = None) -> None:
        existing = self.repository.find_by_username(username)
        if existing and existing.id != exclude_id:
            raise ConflictError(f"El usuario '{username}' ya existe")

    def _check_parent(self, parent_id: str, user_id: str) -> None:
        if parent_id == user_id:
            raise ValidationError("Un usuario no puede ser su propio supervisor")
        if self.repository.get_user(parent_id) is None:
            raise ValidationError(f"Supervisor {parent_id} no existe")

    def list_users(self, principal: Principal) -> List[UserResponse]:
        users = self.repository.get_users()
        return [UserResponse.from_user(u) for u in scope.visible(principal, users, users)]

    def get_user(self, principal: Principal, user_id: str) -> UserResponse:
        return UserResponse.from_user(self._visible_user(principal, user_id))

    def create_user(self, principal: Principal, data: UserCreateRequest) -> UserResponse:
        """Crear usuario; un GENERAL solo crea operadores bajo su mando"""
        if principal.role == UserRole.OPERATOR:
            raise AuthorizationError("Los operadores no pueden crear usuarios")

        username = data.username.strip()
        name = data.name.strip()
        if not username or not name or not data.password:
            raise ValidationError("Complete los campos obligatorios: usuario, nombre y contraseña")
        self._check_unique_username(username)

        role = data.role
        parent_id = data.parent_id or principal.id
        if principal.role == UserRole.GENERAL:
            if role != UserRole.OPERATOR:
                raise AuthorizationError("Un supervisor general solo puede crear operadores")
            parent_id = principal.id

        user_id = new_id()
        self._check_parent(parent_id, user_id)

        user = User(
            id=user_id,
            username=username,
            password=data.password,
            name=name,
            role=role,
            parent_id=parent_id,
            allowed_modes=data.allowed_modes or list(ALL_MODES)
        )
        self.repository.save_user(user)
        logger.info(f"Usuario '{username}' ({role.value}) creado por {principal.id}")
        return UserResponse.from_user(user)

    def update_user(self, principal: Principal, user_id: str, data: UserUpdateRequest) -> UserResponse:
        user = self._visible_user(principal, user_id)
        if not scope.can_edit_user(principal, user):
            raise AuthorizationError("No tiene permisos para editar este usuario")

        # parent_id en null significa quitar el supervisor
        changes = {
            k: v for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k == "parent_id"
        }

        if "username" in changes:
            username = (changes["username"] or "").strip()
            if not username:
                raise ValidationError("El nombre de usuario es obligatorio")
            self._check_unique_username(username, exclude_id=user.id)
            changes["username"] = username
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("El nombre es obligatorio")
            changes["name"] = name
        if "password" in changes and not changes["password"]:
            raise ValidationError("La contraseña es obligatoria")

        if principal.role != UserRole.ADMIN:
            # Un GENERAL no cambia roles ni jerarquía
            if changes.get("role", user.role) != user.role:
                raise AuthorizationError("Solo un administrador puede cambiar roles")
            if "parent_id" in changes and changes["parent_id"] != user.parent_id:
                raise AuthorizationError("Solo un administrador puede cambiar el supervisor")

        if changes.get("parent_id"):
            self._check_parent(changes["parent_id"], user.id)
        if "allowed_modes" in changes and not changes["allowed_modes"]:
            changes["allowed_modes"] = list(ALL_MODES)

        updated = user.model_copy(update=changes)
        self.repository.save_user(updated)
        return UserResponse.from_user(updated)

    def delete_user(self, principal: Principal, user_id: str) -> None:
        user = self._visible_user(principal, user_id)
        if user.id == principal.id:
            raise AuthorizationError("No puede eliminar su propio usuario")
        if not scope.can_delete_user(principal, user):
            raise AuthorizationError("No tiene permisos para eliminar este usuario")
        self.repository.delete_user(user.id)
        logger.info(f"Usuario {user.id} eliminado por {principal.id}")
