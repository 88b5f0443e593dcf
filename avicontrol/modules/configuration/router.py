# avicontrol/modules/configuration/router.py
from fastapi import APIRouter, Depends

from avicontrol.core.auth.dependencies import get_admin_principal
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.context import AppContext, get_context
from avicontrol.shared.schemas.entities import AppConfig
from .service import ConfigurationService
from .schemas import ConfigUpdateRequest, PublicConfigResponse, ResetRequest

router = APIRouter()


def get_service(ctx: AppContext = Depends(get_context)) -> ConfigurationService:
    return ConfigurationService(ctx.store, ctx.replication)


@router.get("/public", response_model=PublicConfigResponse)
async def get_public_config(service: ConfigurationService = Depends(get_service)):
    """Nombre de la app y empresa para la pantalla de login"""
    return service.get_public_config()


@router.get("", response_model=AppConfig)
async def get_config(
    principal: Principal = Depends(get_admin_principal),
    service: ConfigurationService = Depends(get_service)
):
    return service.get_config()


@router.put("", response_model=AppConfig)
async def save_config(
    config_data: ConfigUpdateRequest,
    principal: Principal = Depends(get_admin_principal),
    service: ConfigurationService = Depends(get_service)
):
    return service.save_config(config_data)


@router.post("/reset", response_model=AppConfig)
async def reset_app(
    reset_data: ResetRequest,
    principal: Principal = Depends(get_admin_principal),
    service: ConfigurationService = Depends(get_service)
):
    """Restablecer datos locales (irreversible, requiere confirm=true)"""
    return await service.reset(reset_data.confirm)
