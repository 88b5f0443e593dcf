from pydantic import BaseModel, Field
from typing import List, Optional

from avicontrol.shared.schemas.entities import UserRole, WeighingMode


class UserCreateRequest(BaseModel):
    """Schema para crear usuario"""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.OPERATOR
    parent_id: Optional[str] = None
    allowed_modes: List[WeighingMode] = []

    class Config:
        json_schema_extra = {
            "example": {
                "username": "operador1",
                "password": "1234",
                "name": "Juan Pérez",
                "role": "OPERATOR",
                "allowed_modes": ["BATCH", "SOLO_POLLO"]
            }
        }


class UserUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    password: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    parent_id: Optional[str] = None
    allowed_modes: Optional[List[WeighingMode]] = None
