# avicontrol/modules/configuration/repository.py
from avicontrol.shared.schemas.entities import AppConfig
from avicontrol.shared.storage import CollectionStore


class ConfigurationRepository:
    def __init__(self, store: CollectionStore):
        self.store = store

    def get_config(self) -> AppConfig:
        return self.store.get_config()

    def save_config(self, config: AppConfig) -> AppConfig:
        self.store.save_config(config)
        return config

    def reset(self) -> None:
        self.store.reset()
