# avicontrol/config/settings.py
from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    # App Info
    app_name: str = "AviControl API"
    version: str = "1.0.0"
    debug: bool = False

    # Almacenamiento local (clave-valor sobre SQLAlchemy)
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./avicontrol.db")
    storage_key_prefix: str = "avi_"

    # Security
    secret_key: str = os.getenv("SECRET_KEY", "change-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720

    # Reglas de negocio
    crate_capacity: int = 9          # pollos por jaba llena
    settled_epsilon: float = 0.1     # tolerancia de redondeo para saldo cancelado

    # Espejo remoto (Firebase Realtime Database via REST)
    mirror_timeout: float = 15.0
    mirror_listen: bool = True
    mirror_sign_in_anonymously: bool = False
    mirror_auth_url: str = "https://identitytoolkit.googleapis.com/v1/accounts:signUp"

    # Server
    host: str = "0.0.0.0"
    port: int = int(os.getenv("PORT", 10000))

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = 'ignore'

settings = Settings()
