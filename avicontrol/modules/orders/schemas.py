from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum

from avicontrol.shared.schemas.common import CamelModel
from avicontrol.shared.schemas.entities import (
    ClientOrder, PaymentMethod, RecordType, WeighingMode
)
from avicontrol.shared.services.aggregator import OrderTotals


class PaymentFilter(str, Enum):
    ALL = "ALL"
    PENDING = "PENDING"
    PAID = "PAID"


class OrderCreateRequest(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=150, description="Nombre del cliente")
    target_crates: int = Field(0, ge=0, description="Meta de jabas, 0 = sin límite")
    weighing_mode: WeighingMode = WeighingMode.BATCH
    batch_id: Optional[str] = Field(None, description="Obligatorio en modo BATCH")

    class Config:
        json_schema_extra = {
            "example": {
                "client_name": "Juan Perez",
                "target_crates": 20,
                "weighing_mode": "BATCH",
                "batch_id": "b1"
            }
        }


class OrderUpdateRequest(BaseModel):
    client_name: Optional[str] = Field(None, min_length=1, max_length=150)
    target_crates: Optional[int] = Field(None, ge=0)


class RecordCreateRequest(BaseModel):
    type: RecordType
    weight: float = Field(..., gt=0, description="Peso en kg")
    quantity: int = Field(..., gt=0, description="Jabas (FULL/EMPTY) o aves (MORTALITY)")


class CheckoutRequest(BaseModel):
    price_per_kg: float = Field(..., gt=0, description="Precio por kg")
    payment_method: PaymentMethod = PaymentMethod.CASH


class PaymentCreateRequest(BaseModel):
    amount: float = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=200)


class OrderWithTotals(CamelModel):
    order: ClientOrder
    totals: OrderTotals
