# avicontrol/modules/orders/service.py
import logging
from typing import List, Optional

from avicontrol.core.auth import scope
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from avicontrol.shared.schemas.entities import (
    BatchStatus, ClientOrder, OrderStatus, Payment, PaymentMethod,
    PaymentStatus, RecordType, WeighingMode, WeighingRecord, new_id, now_ms
)
from avicontrol.shared.services.aggregator import CollectionsSummary, DomainAggregator
from avicontrol.shared.storage import CollectionStore
from .repository import OrdersRepository
from .schemas import (
    CheckoutRequest, OrderCreateRequest, OrderUpdateRequest, OrderWithTotals,
    PaymentCreateRequest, PaymentFilter, RecordCreateRequest
)

logger = logging.getLogger(__name__)

CHECKOUT_NOTE = "Cierre de Venta"
MANUAL_PAYMENT_NOTE = "Abono Manual"


class OrdersService:
    def __init__(self, store: CollectionStore, aggregator: DomainAggregator):
        self.repository = OrdersRepository(store)
        self.aggregator = aggregator

    # ==================== LECTURA ====================

    def _visible_order(self, principal: Principal, order_id: str) -> ClientOrder:
        order = self.repository.get_order(order_id)
        if order is None or not scope.can_see(principal, order, self.repository.get_users()):
            raise NotFoundError(f"Pedido {order_id} no encontrado")
        return order

    def _open_order(self, principal: Principal, order_id: str) -> ClientOrder:
        order = self._visible_order(principal, order_id)
        if order.is_closed:
            raise ConflictError("El pedido está cerrado y no admite cambios")
        return order

    def _with_totals(self, order: ClientOrder) -> OrderWithTotals:
        return OrderWithTotals(order=order, totals=self.aggregator.order_totals(order))

    def list_orders(
        self,
        principal: Principal,
        batch_id: Optional[str] = None,
        weighing_mode: Optional[WeighingMode] = None
    ) -> List[OrderWithTotals]:
        """Pedidos visibles de un lote, o de un modo de venta directa"""
        orders = scope.visible(principal, self.repository.get_orders(), self.repository.get_users())
        if batch_id is not None:
            orders = [o for o in orders if o.batch_id == batch_id]
        elif weighing_mode is not None:
            orders = [o for o in orders if o.weighing_mode == weighing_mode]
        return [self._with_totals(o) for o in orders]

    def get_order(self, principal: Principal, order_id: str) -> OrderWithTotals:
        return self._with_totals(self._visible_order(principal, order_id))

    def collections(
        self,
        principal: Principal,
        payment_filter: PaymentFilter = PaymentFilter.ALL,
        search: Optional[str] = None
    ) -> CollectionsSummary:
        orders = scope.visible(principal, self.repository.get_orders(), self.repository.get_users())
        return self.aggregator.collections_summary(orders, payment_filter.value, search)

    # ==================== ALTA / EDICIÓN ====================

    def create_order(self, principal: Principal, data: OrderCreateRequest) -> ClientOrder:
        client_name = data.client_name.strip().upper()
        if not client_name:
            raise ValidationError("El nombre del cliente es obligatorio")

        if principal.allowed_modes and data.weighing_mode not in principal.allowed_modes:
            raise AuthorizationError(f"Modo de pesaje {data.weighing_mode.value} no habilitado para el usuario")

        batch_id = None
        if data.weighing_mode == WeighingMode.BATCH:
            if not data.batch_id:
                raise ValidationError("El modo BATCH requiere un lote")
            batch = self.repository.get_batch(data.batch_id)
            if batch is None or not scope.can_see(principal, batch, self.repository.get_users()):
                raise NotFoundError(f"Lote {data.batch_id} no encontrado")
            if batch.status != BatchStatus.ACTIVE:
                raise ConflictError(f"El lote '{batch.name}' está cerrado")
            batch_id = batch.id

        order = ClientOrder(
            id=new_id(),
            client_name=client_name,
            target_crates=data.target_crates,
            batch_id=batch_id,
            weighing_mode=data.weighing_mode,
            created_by=principal.id
        )
        self.repository.save_order(order)
        logger.info(f"Pedido de '{client_name}' creado ({data.weighing_mode.value})")
        return order

    def update_order(self, principal: Principal, order_id: str, data: OrderUpdateRequest) -> ClientOrder:
        order = self._open_order(principal, order_id)
        changes = {}

        if data.client_name is not None:
            client_name = data.client_name.strip().upper()
            if not client_name:
                raise ValidationError("El nombre del cliente es obligatorio")
            changes["client_name"] = client_name

        if data.target_crates is not None:
            full_units = self.aggregator.order_totals(order).full_units
            if 0 < data.target_crates < full_units:
                raise ValidationError(
                    f"La meta de jabas ({data.target_crates}) es menor a las jabas ya pesadas ({full_units})"
                )
            changes["target_crates"] = data.target_crates

        updated = order.model_copy(update=changes)
        self.repository.save_order(updated)
        return updated

    def delete_order(self, principal: Principal, order_id: str) -> None:
        self._visible_order(principal, order_id)
        self.repository.delete_order(order_id)
        logger.info(f"Pedido {order_id} eliminado por {principal.id}")

    # ==================== PESAJE ====================

    def add_record(self, principal: Principal, order_id: str, data: RecordCreateRequest) -> OrderWithTotals:
        """Registrar una pesada; se rechaza sin modificar el pedido si rompe los límites"""
        order = self._open_order(principal, order_id)
        totals = self.aggregator.order_totals(order)

        if data.type == RecordType.FULL and order.target_crates > 0:
            if totals.full_units + data.quantity > order.target_crates:
                raise ValidationError(
                    f"Límite de jabas alcanzado para este cliente "
                    f"({totals.full_units}/{order.target_crates})"
                )
        if data.type == RecordType.EMPTY:
            if totals.empty_units + data.quantity > totals.full_units:
                raise ValidationError(
                    f"Las jabas vacías ({totals.empty_units + data.quantity}) "
                    f"no pueden superar a las llenas ({totals.full_units})"
                )

        record = WeighingRecord(
            id=new_id(),
            timestamp=now_ms(),
            weight=data.weight,
            quantity=data.quantity,
            type=data.type
        )
        # Las pesadas más recientes van primero
        updated = order.model_copy(update={"records": [record] + list(order.records)})
        self.repository.save_order(updated)
        return self._with_totals(updated)

    def delete_record(self, principal: Principal, order_id: str, record_id: str) -> OrderWithTotals:
        order = self._open_order(principal, order_id)
        if not any(r.id == record_id for r in order.records):
            raise NotFoundError(f"Pesada {record_id} no encontrada")

        records = [r for r in order.records if r.id != record_id]
        updated = order.model_copy(update={"records": records})
        self.repository.save_order(updated)
        return self._with_totals(updated)

    # ==================== LIQUIDACIÓN ====================

    def checkout(self, principal: Principal, order_id: str, data: CheckoutRequest) -> OrderWithTotals:
        """Cerrar el pedido una sola vez fijando precio y forma de pago"""
        order = self._visible_order(principal, order_id)
        if order.is_closed:
            raise ConflictError("El pedido ya fue liquidado")

        net_weight = self.aggregator.order_totals(order).net_weight
        changes = {
            "status": OrderStatus.CLOSED,
            "price_per_kg": data.price_per_kg,
            "payment_method": data.payment_method,
            "payment_status": PaymentStatus.PENDING,
        }
        if data.payment_method == PaymentMethod.CASH:
            changes["payments"] = list(order.payments) + [Payment(
                id=new_id(),
                amount=net_weight * data.price_per_kg,
                timestamp=now_ms(),
                note=CHECKOUT_NOTE
            )]
            changes["payment_status"] = PaymentStatus.PAID

        updated = order.model_copy(update=changes)
        self.repository.save_order(updated)
        logger.info(
            f"Pedido {order_id} liquidado: {net_weight:.2f} kg x {data.price_per_kg} "
            f"({data.payment_method.value})"
        )
        return self._with_totals(updated)

    def register_payment(self, principal: Principal, order_id: str, data: PaymentCreateRequest) -> OrderWithTotals:
        """Abono sobre un pedido liquidado"""
        order = self._visible_order(principal, order_id)
        if not order.is_closed:
            raise ConflictError("Solo se registran abonos en pedidos liquidados")

        payment = Payment(
            id=new_id(),
            amount=data.amount,
            timestamp=now_ms(),
            note=data.note or MANUAL_PAYMENT_NOTE
        )
        updated = order.model_copy(update={"payments": list(order.payments) + [payment]})
        if self.aggregator.order_totals(updated).settled:
            updated = updated.model_copy(update={"payment_status": PaymentStatus.PAID})

        self.repository.save_order(updated)
        logger.info(f"Abono de {data.amount:.2f} registrado en pedido {order_id}")
        return self._with_totals(updated)
