# avicontrol/modules/orders/router.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from avicontrol.core.auth.dependencies import get_current_principal, get_manager_principal
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.context import AppContext, get_context
from avicontrol.shared.schemas.common import BaseResponse
from avicontrol.shared.schemas.entities import ClientOrder, WeighingMode
from avicontrol.shared.services.aggregator import CollectionsSummary, OrderTotals
from .service import OrdersService
from .schemas import (
    CheckoutRequest, OrderCreateRequest, OrderUpdateRequest, OrderWithTotals,
    PaymentCreateRequest, PaymentFilter, RecordCreateRequest
)

router = APIRouter()


def get_service(ctx: AppContext = Depends(get_context)) -> OrdersService:
    return OrdersService(ctx.store, ctx.aggregator)


@router.get("", response_model=List[OrderWithTotals])
async def list_orders(
    batch_id: Optional[str] = Query(None, description="Pedidos de un lote"),
    weighing_mode: Optional[WeighingMode] = Query(None, description="Pedidos de venta directa por modo"),
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    return service.list_orders(principal, batch_id, weighing_mode)


@router.get("/collections", response_model=CollectionsSummary)
async def get_collections(
    payment_filter: PaymentFilter = Query(PaymentFilter.ALL),
    search: Optional[str] = Query(None, description="Buscar por cliente"),
    principal: Principal = Depends(get_manager_principal),
    service: OrdersService = Depends(get_service)
):
    """
    Cobranza

    **Incluye:**
    - Total vendido, cobrado y saldo pendiente
    - Pedidos filtrados por estado de pago (saldo <= 0.1 se considera cancelado)
    """
    return service.collections(principal, payment_filter, search)


@router.post("", response_model=ClientOrder, status_code=201)
async def create_order(
    order_data: OrderCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    return service.create_order(principal, order_data)


@router.get("/{order_id}", response_model=OrderWithTotals)
async def get_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    return service.get_order(principal, order_id)


@router.get("/{order_id}/totals", response_model=OrderTotals)
async def get_order_totals(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    """Peso bruto, tara, merma, neto, aves estimadas, promedio y saldo"""
    return service.get_order(principal, order_id).totals


@router.put("/{order_id}", response_model=ClientOrder)
async def update_order(
    order_id: str,
    order_data: OrderUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    return service.update_order(principal, order_id, order_data)


@router.delete("/{order_id}", response_model=BaseResponse)
async def delete_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    service.delete_order(principal, order_id)
    return BaseResponse(success=True, message="Pedido eliminado")


@router.post("/{order_id}/records", response_model=OrderWithTotals, status_code=201)
async def add_record(
    order_id: str,
    record_data: RecordCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    """
    Registrar pesada

    - FULL: jabas llenas, no puede superar la meta de jabas del cliente
    - EMPTY: jabas vacías, no pueden superar a las llenas
    - MORTALITY: aves muertas (merma)
    """
    return service.add_record(principal, order_id, record_data)


@router.delete("/{order_id}/records/{record_id}", response_model=OrderWithTotals)
async def delete_record(
    order_id: str,
    record_id: str,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    return service.delete_record(principal, order_id, record_id)


@router.post("/{order_id}/checkout", response_model=OrderWithTotals)
async def checkout_order(
    order_id: str,
    checkout_data: CheckoutRequest,
    principal: Principal = Depends(get_current_principal),
    service: OrdersService = Depends(get_service)
):
    """Liquidar: en CASH se registra el pago total y queda PAID"""
    return service.checkout(principal, order_id, checkout_data)


@router.post("/{order_id}/payments", response_model=OrderWithTotals, status_code=201)
async def register_payment(
    order_id: str,
    payment_data: PaymentCreateRequest,
    principal: Principal = Depends(get_manager_principal),
    service: OrdersService = Depends(get_service)
):
    """Registrar abono sobre un pedido liquidado"""
    return service.register_payment(principal, order_id, payment_data)
