# avicontrol/modules/orders/repository.py
from typing import List, Optional

from avicontrol.shared.schemas.entities import Batch, ClientOrder, User
from avicontrol.shared.storage import Collection, CollectionStore


class OrdersRepository:
    def __init__(self, store: CollectionStore):
        self.store = store

    def get_orders(self) -> List[ClientOrder]:
        return self.store.get_all(Collection.ORDERS)

    def get_order(self, order_id: str) -> Optional[ClientOrder]:
        return self.store.get_by_id(Collection.ORDERS, order_id)

    def get_batch(self, batch_id: str) -> Optional[Batch]:
        return self.store.get_by_id(Collection.BATCHES, batch_id)

    def get_users(self) -> List[User]:
        return self.store.get_all(Collection.USERS)

    def save_order(self, order: ClientOrder) -> ClientOrder:
        self.store.upsert(Collection.ORDERS, order)
        return order

    def delete_order(self, order_id: str) -> None:
        self.store.delete_by_id(Collection.ORDERS, order_id)
