# avicontrol/modules/batches/router.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from avicontrol.core.auth.dependencies import get_current_principal
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.context import AppContext, get_context
from avicontrol.shared.schemas.entities import Batch, BatchStatus
from avicontrol.shared.services.aggregator import BatchTotals
from .service import BatchesService
from .schemas import (
    BatchCreateRequest, BatchUpdateRequest, BatchWithTotals, BatchDeleteResponse
)

router = APIRouter()


def get_service(ctx: AppContext = Depends(get_context)) -> BatchesService:
    return BatchesService(ctx.store, ctx.aggregator)


@router.get("", response_model=List[BatchWithTotals])
async def list_batches(
    status: Optional[BatchStatus] = Query(None, description="ACTIVE o CLOSED"),
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    """Lotes visibles para el usuario con peso neto, jabas y avance"""
    return service.list_batches(principal, status)


@router.post("", response_model=Batch, status_code=201)
async def create_batch(
    batch_data: BatchCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    return service.create_batch(principal, batch_data)


@router.get("/{batch_id}", response_model=BatchWithTotals)
async def get_batch(
    batch_id: str,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    return service.get_batch(principal, batch_id)


@router.get("/{batch_id}/totals", response_model=BatchTotals)
async def get_batch_totals(
    batch_id: str,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    """Totales agregados de todos los pedidos del lote"""
    return service.get_batch(principal, batch_id).totals


@router.put("/{batch_id}", response_model=Batch)
async def update_batch(
    batch_id: str,
    batch_data: BatchUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    return service.update_batch(principal, batch_id, batch_data)


@router.post("/{batch_id}/close", response_model=Batch)
async def close_batch(
    batch_id: str,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    return service.set_status(principal, batch_id, BatchStatus.CLOSED)


@router.post("/{batch_id}/reopen", response_model=Batch)
async def reopen_batch(
    batch_id: str,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    return service.set_status(principal, batch_id, BatchStatus.ACTIVE)


@router.delete("/{batch_id}", response_model=BatchDeleteResponse)
async def delete_batch(
    batch_id: str,
    principal: Principal = Depends(get_current_principal),
    service: BatchesService = Depends(get_service)
):
    """Eliminar lote y, en cascada, todos sus pedidos"""
    deleted_orders = service.delete_batch(principal, batch_id)
    return BatchDeleteResponse(
        message="Lote eliminado",
        deleted_orders=deleted_orders
    )
