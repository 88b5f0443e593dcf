from pydantic import BaseModel, Field
from typing import List, Optional

from avicontrol.shared.schemas.entities import User, UserRole, WeighingMode


class UserLogin(BaseModel):
    """Schema para login de usuario"""
    username: str = Field(..., min_length=1, description="Usuario")
    password: str = Field(..., min_length=1, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "admin",
                "password": "123"
            }
        }


class Principal(BaseModel):
    """Usuario autenticado sobre el que se filtra cada lectura"""
    id: str
    role: UserRole
    parent_id: Optional[str] = None
    name: str = ""
    allowed_modes: List[WeighingMode] = []

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            role=user.role,
            parent_id=user.parent_id,
            name=user.name,
            allowed_modes=user.allowed_modes
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserResponse(BaseModel):
    """Schema para respuesta de usuario (sin contraseña)"""
    id: str
    username: str
    name: str
    role: UserRole
    parent_id: Optional[str] = None
    allowed_modes: List[WeighingMode] = []

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(**user.model_dump(exclude={"password"}))


class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
