from pydantic import BaseModel, Field
from typing import Optional

from avicontrol.shared.schemas.common import BaseResponse, CamelModel
from avicontrol.shared.schemas.entities import Batch
from avicontrol.shared.services.aggregator import BatchTotals


class BatchCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Nombre del lote")
    total_crates_limit: int = Field(0, ge=0, description="Meta de jabas, 0 = sin límite")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "LOTE 15 - GALPÓN 3",
                "total_crates_limit": 400
            }
        }


class BatchUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    total_crates_limit: Optional[int] = Field(None, ge=0)


class BatchWithTotals(CamelModel):
    batch: Batch
    totals: BatchTotals


class BatchDeleteResponse(BaseResponse):
    success: bool = True
    deleted_orders: int = 0
