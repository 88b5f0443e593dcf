# avicontrol/shared/database/models.py
from sqlalchemy import Column, String, Text, DateTime, func

from avicontrol.config.database import Base


class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


class KeyValueEntry(Base, TimestampMixin):
    """Blob JSON persistido bajo una clave (avi_users, avi_batches, avi_orders, avi_config)"""
    __tablename__ = "kv_entries"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
