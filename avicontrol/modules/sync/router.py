# avicontrol/modules/sync/router.py
from fastapi import APIRouter, Depends

from avicontrol.core.auth.dependencies import get_admin_principal
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.context import AppContext, get_context
from .service import SyncService
from .schemas import (
    ConnectionTestRequest, SyncResult, SyncStatusResponse, WipeRemoteRequest
)

router = APIRouter()


def get_service(ctx: AppContext = Depends(get_context)) -> SyncService:
    return SyncService(ctx.store, ctx.replication)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    return service.status()


@router.post("/connect", response_model=SyncResult)
async def connect(
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    """
    Activar sincronización con las credenciales guardadas

    Descarga cada colección del espejo (si tiene datos) y se suscribe a cambios.
    Si falta un campo de credenciales, ok=false indica cuál.
    """
    return await service.connect()


@router.post("/disconnect", response_model=SyncResult)
async def disconnect(
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    """Desactivar; los datos locales se conservan"""
    return await service.disconnect()


@router.post("/test", response_model=SyncResult)
async def test_connection(
    test_data: ConnectionTestRequest,
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    """Probar credenciales sin guardarlas ni activar la sincronización"""
    return await service.test_connection(test_data.firebase_config)


@router.post("/push-all", response_model=SyncResult)
async def push_all(
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    """Subir todas las colecciones locales al espejo"""
    return await service.push_all()


@router.post("/wipe", response_model=SyncResult)
async def wipe_remote(
    wipe_data: WipeRemoteRequest,
    principal: Principal = Depends(get_admin_principal),
    service: SyncService = Depends(get_service)
):
    """Borrar todos los datos del espejo (irreversible, requiere confirm=true)"""
    return await service.wipe_remote(wipe_data.confirm)
