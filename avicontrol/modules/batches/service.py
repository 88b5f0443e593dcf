# avicontrol/modules/batches/service.py
import logging
from typing import List, Optional

from avicontrol.core.auth import scope
from avicontrol.core.auth.schemas import Principal
from avicontrol.core.exceptions import NotFoundError, ValidationError
from avicontrol.shared.schemas.entities import Batch, BatchStatus, new_id, now_ms
from avicontrol.shared.services.aggregator import DomainAggregator
from avicontrol.shared.storage import CollectionStore
from .repository import BatchesRepository
from .schemas import BatchCreateRequest, BatchUpdateRequest, BatchWithTotals

logger = logging.getLogger(__name__)


class BatchesService:
    def __init__(self, store: CollectionStore, aggregator: DomainAggregator):
        self.repository = BatchesRepository(store)
        self.aggregator = aggregator

    def _visible_batch(self, principal: Principal, batch_id: str) -> Batch:
        batch = self.repository.get_batch(batch_id)
        if batch is None or not scope.can_see(principal, batch, self.repository.get_users()):
            raise NotFoundError(f"Lote {batch_id} no encontrado")
        return batch

    def _with_totals(self, batch: Batch, orders) -> BatchWithTotals:
        return BatchWithTotals(batch=batch, totals=self.aggregator.batch_totals(batch, orders))

    def list_batches(self, principal: Principal, status: Optional[BatchStatus] = None) -> List[BatchWithTotals]:
        """Lotes visibles con sus totales recalculados"""
        batches = scope.visible(principal, self.repository.get_batches(), self.repository.get_users())
        if status is not None:
            batches = [b for b in batches if b.status == status]
        orders = self.repository.get_orders()
        return [self._with_totals(b, orders) for b in batches]

    def get_batch(self, principal: Principal, batch_id: str) -> BatchWithTotals:
        batch = self._visible_batch(principal, batch_id)
        return self._with_totals(batch, self.repository.get_orders())

    def create_batch(self, principal: Principal, data: BatchCreateRequest) -> Batch:
        name = data.name.strip()
        if not name:
            raise ValidationError("El nombre del lote es obligatorio")

        batch = Batch(
            id=new_id(),
            name=name,
            total_crates_limit=data.total_crates_limit,
            created_at=now_ms(),
            status=BatchStatus.ACTIVE,
            created_by=principal.id
        )
        self.repository.save_batch(batch)
        logger.info(f"Lote '{name}' creado por {principal.id}")
        return batch

    def update_batch(self, principal: Principal, batch_id: str, data: BatchUpdateRequest) -> Batch:
        batch = self._visible_batch(principal, batch_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("El nombre del lote es obligatorio")

        updated = batch.model_copy(update=changes)
        self.repository.save_batch(updated)
        return updated

    def set_status(self, principal: Principal, batch_id: str, status: BatchStatus) -> Batch:
        """Cerrar o reabrir un lote"""
        batch = self._visible_batch(principal, batch_id)
        updated = batch.model_copy(update={"status": status})
        self.repository.save_batch(updated)
        logger.info(f"Lote {batch_id} -> {status.value}")
        return updated

    def delete_batch(self, principal: Principal, batch_id: str) -> int:
        """Eliminar el lote y todos sus pedidos"""
        self._visible_batch(principal, batch_id)
        deleted_orders = self.repository.delete_batch(batch_id)
        logger.info(f"Lote {batch_id} eliminado junto a {deleted_orders} pedidos")
        return deleted_orders
