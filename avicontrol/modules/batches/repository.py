# avicontrol/modules/batches/repository.py
from typing import List, Optional

from avicontrol.shared.schemas.entities import Batch, ClientOrder, User
from avicontrol.shared.storage import Collection, CollectionStore


class BatchesRepository:
    def __init__(self, store: CollectionStore):
        self.store = store

    def get_batches(self) -> List[Batch]:
        return self.store.get_all(Collection.BATCHES)

    def get_batch(self, batch_id: str) -> Optional[Batch]:
        return self.store.get_by_id(Collection.BATCHES, batch_id)

    def get_orders(self) -> List[ClientOrder]:
        return self.store.get_all(Collection.ORDERS)

    def get_users(self) -> List[User]:
        return self.store.get_all(Collection.USERS)

    def save_batch(self, batch: Batch) -> Batch:
        self.store.upsert(Collection.BATCHES, batch)
        return batch

    def delete_batch(self, batch_id: str) -> int:
        """Elimina el lote y sus pedidos; retorna cuántos pedidos se borraron"""
        return self.store.delete_batch(batch_id)
