# avicontrol/shared/schemas/entities.py
"""
Entidades persistidas: usuarios, lotes, pedidos de cliente y configuración.

Todos los campos están siempre presentes con un valor por defecto explícito,
así dispositivos con versiones distintas leen el mismo JSON sin sorpresas.
Las claves del JSON son camelCase (clientName, targetCrates, batchId...).
"""
import time
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from .common import CamelModel


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    GENERAL = "GENERAL"
    OPERATOR = "OPERATOR"


class WeighingMode(str, Enum):
    BATCH = "BATCH"
    SOLO_POLLO = "SOLO_POLLO"
    SOLO_JABAS = "SOLO_JABAS"


class RecordType(str, Enum):
    FULL = "FULL"            # jabas llenas (bruto)
    EMPTY = "EMPTY"          # jabas vacías (tara)
    MORTALITY = "MORTALITY"  # aves muertas (merma)


class BatchStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class OrderStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT = "CREDIT"


ALL_MODES = [WeighingMode.BATCH, WeighingMode.SOLO_POLLO, WeighingMode.SOLO_JABAS]


class User(CamelModel):
    id: str
    username: str
    password: str = ""
    name: str = ""
    role: UserRole = UserRole.OPERATOR
    parent_id: Optional[str] = None
    allowed_modes: List[WeighingMode] = Field(default_factory=lambda: list(ALL_MODES))


class Batch(CamelModel):
    id: str
    name: str
    total_crates_limit: int = 0
    created_at: int = 0
    status: BatchStatus = BatchStatus.ACTIVE
    created_by: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def archived_is_closed(cls, v):
        if v == "ARCHIVED":
            return BatchStatus.CLOSED
        return v


class WeighingRecord(CamelModel):
    id: str
    timestamp: int = 0
    weight: float
    quantity: int
    type: RecordType


class Payment(CamelModel):
    id: str
    amount: float
    timestamp: int = 0
    note: Optional[str] = None


class ClientOrder(CamelModel):
    id: str
    client_name: str
    target_crates: int = 0
    price_per_kg: float = 0.0
    status: OrderStatus = OrderStatus.OPEN
    records: List[WeighingRecord] = Field(default_factory=list)
    batch_id: Optional[str] = None
    weighing_mode: WeighingMode = WeighingMode.BATCH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payments: List[Payment] = Field(default_factory=list)
    created_by: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None

    @property
    def is_closed(self) -> bool:
        return self.status == OrderStatus.CLOSED


class FirebaseConfig(CamelModel):
    api_key: str = ""
    auth_domain: str = ""
    database_url: str = Field("", alias="databaseURL")
    project_id: str = ""
    storage_bucket: str = ""
    messaging_sender_id: str = ""
    app_id: str = ""


class AppConfig(CamelModel):
    app_name: str = "AVICONTROL PRO"
    company_name: str = "AVÍCOLA BARSA S.A.C."
    logo_url: Optional[str] = None
    cloud_enabled: bool = False
    scale_connected: bool = False
    printer_connected: bool = False
    default_full_crate_batch: int = 5
    default_empty_crate_batch: int = 10
    firebase_config: FirebaseConfig = Field(default_factory=FirebaseConfig)


DEFAULT_ADMIN = User(
    id="1",
    username="admin",
    password="123",
    name="Administrador",
    role=UserRole.ADMIN
)
