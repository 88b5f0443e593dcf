from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from avicontrol.shared.schemas.entities import FirebaseConfig


class SyncState(str, Enum):
    DISABLED = "DISABLED"
    ENABLED = "ENABLED"


class SyncResult(BaseModel):
    """Resultado de una operación remota; los fallos nunca se lanzan como excepción"""
    ok: bool
    message: str = ""
    field: Optional[str] = Field(None, description="Campo de credenciales faltante o inválido")


class SyncStatusResponse(BaseModel):
    state: SyncState
    project_id: Optional[str] = None
    database_url: Optional[str] = None
    listening: int = 0
    pending_pushes: int = 0
    last_pull_at: Optional[datetime] = None
    last_push_at: Optional[datetime] = None
    last_error: Optional[str] = None


class ConnectionTestRequest(BaseModel):
    firebase_config: FirebaseConfig


class WipeRemoteRequest(BaseModel):
    confirm: bool = Field(False, description="Debe ser true: borra todos los datos del espejo")
