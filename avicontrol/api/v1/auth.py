from fastapi import APIRouter, Depends

from avicontrol.core.auth.dependencies import get_current_principal
from avicontrol.core.auth.schemas import Principal, TokenResponse, UserLogin, UserResponse
from avicontrol.core.context import AppContext, get_context
from avicontrol.core.exceptions import AuthenticationError, NotFoundError
from avicontrol.shared.storage import Collection

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    user_login: UserLogin,
    ctx: AppContext = Depends(get_context)
):
    """
    Login con usuario y contraseña

    **Body:**
    ```json
        {
            "username": "admin",
            "password": "123"
        }
    ```
    """
    users = ctx.store.get_all(Collection.USERS)
    user = ctx.auth.authenticate(users, user_login.username, user_login.password)
    if user is None:
        raise AuthenticationError("Usuario o contraseña incorrectos")

    return TokenResponse(
        access_token=ctx.auth.create_access_token(user),
        token_type="bearer",
        user=UserResponse.from_user(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    ctx: AppContext = Depends(get_context)
):
    """Obtener información del usuario actual"""
    user = ctx.store.get_by_id(Collection.USERS, principal.id)
    if user is None:
        raise NotFoundError("Usuario no encontrado")
    return UserResponse.from_user(user)


@router.post("/logout")
async def logout():
    """
    Logout (con JWT stateless, solo informativo)

    En el frontend debes eliminar el token del storage.
    """
    return {"message": "Logout exitoso. Elimina el token del cliente."}
