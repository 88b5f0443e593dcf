from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from jose import jwt, JWTError

from avicontrol.config.settings import Settings
from avicontrol.shared.schemas.entities import User


class AuthService:
    """Servicio de autenticación"""

    def __init__(self, settings: Settings):
        self.settings = settings

    @staticmethod
    def authenticate(users: Iterable[User], username: str, password: str) -> Optional[User]:
        """Buscar usuario por credenciales (contraseñas en texto plano, heredado)"""
        wanted = username.strip().lower()
        return next(
            (u for u in users if u.username.lower() == wanted and u.password == password),
            None
        )

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Crear token de acceso"""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.settings.access_token_expire_minutes)
        )
        to_encode = {
            "user_id": user.id,
            "role": user.role.value,
            "parent_id": user.parent_id,
            "exp": expire
        }
        return jwt.encode(to_encode, self.settings.secret_key, algorithm=self.settings.algorithm)

    def verify_token(self, token: str) -> Optional[dict]:
        """Verificar y decodificar token"""
        try:
            return jwt.decode(token, self.settings.secret_key, algorithms=[self.settings.algorithm])
        except JWTError:
            return None
