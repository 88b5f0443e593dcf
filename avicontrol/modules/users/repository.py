# avicontrol/modules/users/repository.py
from typing import List, Optional

from avicontrol.shared.schemas.entities import User
from avicontrol.shared.storage import Collection, CollectionStore


class UsersRepository:
    def __init__(self, store: CollectionStore):
        self.store = store

    def get_users(self) -> List[User]:
        return self.store.get_all(Collection.USERS)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.store.get_by_id(Collection.USERS, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        wanted = username.strip().lower()
        return next((u for u in self.get_users() if u.username.lower() == wanted), None)

    def save_user(self, user: User) -> User:
        self.store.upsert(Collection.USERS, user)
        return user

    def delete_user(self, user_id: str) -> None:
        self.store.delete_by_id(Collection.USERS, user_id)
