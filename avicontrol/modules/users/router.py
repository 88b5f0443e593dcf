# avicontrol/modules/users/router.py
from fastapi import APIRouter, Depends
from typing import List

from avicontrol.core.auth.dependencies import get_manager_principal
from avicontrol.core.auth.schemas import Principal, UserResponse
from avicontrol.core.context import AppContext, get_context
from avicontrol.shared.schemas.common import BaseResponse
from .service import UsersService
from .schemas import UserCreateRequest, UserUpdateRequest

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    principal: Principal = Depends(get_manager_principal),
    ctx: AppContext = Depends(get_context)
):
    """
    Listar usuarios visibles

    - ADMIN: todos
    - GENERAL: él mismo y sus subordinados directos
    """
    return UsersService(ctx.store).list_users(principal)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreateRequest,
    principal: Principal = Depends(get_manager_principal),
    ctx: AppContext = Depends(get_context)
):
    """Crear usuario (un GENERAL solo crea operadores a su cargo)"""
    return UsersService(ctx.store).create_user(principal, user_data)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_manager_principal),
    ctx: AppContext = Depends(get_context)
):
    return UsersService(ctx.store).get_user(principal, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdateRequest,
    principal: Principal = Depends(get_manager_principal),
    ctx: AppContext = Depends(get_context)
):
    return UsersService(ctx.store).update_user(principal, user_id, user_data)


@router.delete("/{user_id}", response_model=BaseResponse)
async def delete_user(
    user_id: str,
    principal: Principal = Depends(get_manager_principal),
    ctx: AppContext = Depends(get_context)
):
    """Eliminar usuario (nunca el propio)"""
    UsersService(ctx.store).delete_user(principal, user_id)
    return BaseResponse(success=True, message="Usuario eliminado")
