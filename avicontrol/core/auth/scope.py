# avicontrol/core/auth/scope.py
"""
Filtro de alcance por jerarquía de usuarios.

- ADMIN: ve todo.
- GENERAL: lo propio y lo de sus subordinados directos (un nivel).
- OPERATOR: lo propio y lo de su supervisor (un nivel hacia arriba).

El dueño de un lote o pedido es createdBy; el dueño de un usuario es él mismo.
Se evalúa en cada lectura, sin caché.
"""
from typing import Iterable, List, Optional, Set, TypeVar

from avicontrol.core.auth.schemas import Principal
from avicontrol.shared.schemas.entities import User, UserRole

T = TypeVar("T")


def owner_of(item) -> Optional[str]:
    if isinstance(item, User):
        return item.id
    return getattr(item, "created_by", None)


def allowed_owners(principal: Principal, users: Iterable[User]) -> Optional[Set[str]]:
    """Ids de dueños visibles; None significa sin restricción"""
    if principal.role == UserRole.ADMIN:
        return None

    owners = {principal.id}
    if principal.role == UserRole.GENERAL:
        owners.update(u.id for u in users if u.parent_id == principal.id)
    elif principal.role == UserRole.OPERATOR and principal.parent_id:
        owners.add(principal.parent_id)
    return owners


def visible(principal: Principal, items: Iterable[T], users: Iterable[User]) -> List[T]:
    owners = allowed_owners(principal, users)
    if owners is None:
        return list(items)
    return [item for item in items if owner_of(item) in owners]


def can_see(principal: Principal, item, users: Iterable[User]) -> bool:
    owners = allowed_owners(principal, users)
    return owners is None or owner_of(item) in owners


def can_edit_user(principal: Principal, target: User) -> bool:
    """ADMIN edita a todos; GENERAL a sí mismo y a sus subordinados directos"""
    if principal.role == UserRole.ADMIN:
        return True
    if principal.role == UserRole.GENERAL:
        return target.id == principal.id or target.parent_id == principal.id
    return False


def can_delete_user(principal: Principal, target: User) -> bool:
    # Nadie puede eliminarse a sí mismo
    if target.id == principal.id:
        return False
    if principal.role == UserRole.ADMIN:
        return True
    return principal.role == UserRole.GENERAL and target.parent_id == principal.id
