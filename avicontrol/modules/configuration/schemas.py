from pydantic import BaseModel, Field
from typing import Optional

from avicontrol.shared.schemas.common import CamelModel
from avicontrol.shared.schemas.entities import FirebaseConfig


class ConfigUpdateRequest(CamelModel):
    """Campos editables; cloudEnabled se gestiona desde /sync"""
    app_name: Optional[str] = Field(None, min_length=1, max_length=100)
    company_name: Optional[str] = Field(None, min_length=1, max_length=150)
    logo_url: Optional[str] = None
    scale_connected: Optional[bool] = None
    printer_connected: Optional[bool] = None
    default_full_crate_batch: Optional[int] = Field(None, ge=1)
    default_empty_crate_batch: Optional[int] = Field(None, ge=1)
    firebase_config: Optional[FirebaseConfig] = None


class PublicConfigResponse(CamelModel):
    """Datos visibles en la pantalla de login, sin credenciales"""
    app_name: str
    company_name: str
    logo_url: Optional[str] = None
    cloud_enabled: bool = False
    default_full_crate_batch: int
    default_empty_crate_batch: int


class ResetRequest(BaseModel):
    confirm: bool = Field(False, description="Debe ser true: borra todos los datos locales")
