# avicontrol/shared/services/mirror_client.py
import httpx
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_AUTH_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signUp"


class MirrorError(Exception):
    """Fallo comunicándose con el espejo remoto (red, credenciales, permisos)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[Tuple[str, Any]]:
    """Agrupar líneas Server-Sent Events en pares (evento, datos JSON)"""
    event = None
    data_lines = []
    async for line in lines:
        if line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data_lines.append(line[len("data:"):].strip())
        elif line == "":
            if event is not None:
                raw = "\n".join(data_lines)
                try:
                    data = json.loads(raw) if raw else None
                except json.JSONDecodeError:
                    data = raw
                yield event, data
            event = None
            data_lines = []


class MirrorClient:
    """Cliente REST para el espejo remoto (Firebase Realtime Database)"""

    def __init__(
        self,
        database_url: str,
        api_key: str = "",
        timeout: float = 15.0,
        sign_in_anonymously: bool = False,
        auth_url: str = DEFAULT_AUTH_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = database_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.sign_in_anonymously = sign_in_anonymously
        self.auth_url = auth_url
        self._id_token: Optional[str] = None
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True
        )

    def _url(self, path: str) -> str:
        path = path.strip("/")
        return f"{self.base_url}/{path}.json" if path else f"{self.base_url}/.json"

    async def _params(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        params = dict(extra or {})
        if self.sign_in_anonymously:
            if not self._id_token:
                await self.sign_in()
            params["auth"] = self._id_token
        return params

    def _check_response(self, response: httpx.Response, action: str) -> None:
        if response.status_code in (401, 403):
            raise MirrorError(
                f"Permiso denegado por el espejo remoto al {action}",
                status_code=response.status_code
            )
        if response.status_code >= 400:
            raise MirrorError(
                f"Error del espejo remoto al {action}: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

    async def _request(self, method: str, path: str, action: str, **kwargs) -> httpx.Response:
        try:
            params = await self._params(kwargs.pop("params", None))
            response = await self._client.request(method, self._url(path), params=params, **kwargs)
        except httpx.TimeoutException:
            raise MirrorError(f"Tiempo de espera agotado al {action}")
        except httpx.HTTPError as e:
            raise MirrorError(f"No se pudo conectar con el espejo remoto al {action}: {e}")
        self._check_response(response, action)
        return response

    async def sign_in(self) -> str:
        """Obtener un id token anónimo a partir del apiKey"""
        try:
            response = await self._client.post(
                self.auth_url,
                params={"key": self.api_key},
                json={"returnSecureToken": True}
            )
        except httpx.HTTPError as e:
            raise MirrorError(f"No se pudo autenticar con el espejo remoto: {e}")
        self._check_response(response, "autenticar")
        data = self._parse_json(response, "autenticar")
        self._id_token = data.get("idToken") if isinstance(data, dict) else None
        if not self._id_token:
            raise MirrorError("La autenticación no devolvió un token")
        logger.info("Sesión anónima obtenida para el espejo remoto")
        return self._id_token

    def _parse_json(self, response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError:
            # Una URL equivocada suele responder 200 con HTML
            raise MirrorError(
                f"Respuesta no válida del espejo remoto al {action}: se esperaba JSON",
                status_code=response.status_code
            )

    async def get_snapshot(self, path: str) -> Any:
        action = f"leer '{path}'"
        response = await self._request("GET", path, action)
        return self._parse_json(response, action)

    async def put_snapshot(self, path: str, data: Any) -> None:
        """Reemplazar el nodo completo; data=None lo elimina"""
        # Se serializa a mano: httpx omite el cuerpo cuando json=None
        await self._request(
            "PUT",
            path,
            f"escribir '{path or '/'}'",
            content=json.dumps(data),
            headers={"Content-Type": "application/json"}
        )

    async def check(self) -> None:
        """Lectura superficial de la raíz para validar URL y permisos"""
        action = "probar la conexión"
        response = await self._request("GET", "", action, params={"shallow": "true"})
        # La raíz superficial es null o un objeto {clave: true}
        data = self._parse_json(response, action)
        if data is not None and not isinstance(data, dict):
            raise MirrorError(
                f"Respuesta inesperada del espejo remoto al {action}",
                status_code=response.status_code
            )

    async def listen(self, path: str) -> AsyncIterator[Tuple[str, Any]]:
        """Suscripción continua; produce (evento, datos) hasta que el servidor cierre"""
        try:
            params = await self._params()
            async with self._client.stream(
                "GET",
                self._url(path),
                params=params,
                headers={"Accept": "text/event-stream"},
                timeout=httpx.Timeout(self.timeout, read=None)
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                self._check_response(response, f"escuchar '{path}'")
                async for event in iter_sse_events(response.aiter_lines()):
                    yield event
        except httpx.HTTPError as e:
            raise MirrorError(f"Se perdió la suscripción a '{path}': {e}")

    async def close(self) -> None:
        await self._client.aclose()
