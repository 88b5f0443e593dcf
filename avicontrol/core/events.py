# avicontrol/core/events.py
import logging
from collections import defaultdict
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class EventBus:
    """
    Canales de cambio por colección (users, batches, orders, config).

    Los eventos no llevan payload: el oyente vuelve a leer con get_all.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, channel: str, listener: Listener) -> Callable[[], None]:
        """Registrar oyente; retorna la función para desuscribirlo"""
        self._listeners[channel].append(listener)

        def unsubscribe():
            if listener in self._listeners[channel]:
                self._listeners[channel].remove(listener)

        return unsubscribe

    def publish(self, channel: str) -> None:
        for listener in list(self._listeners[channel]):
            try:
                listener()
            except Exception:
                # Un oyente roto no debe deshacer una escritura ya persistida
                logger.exception(f"Error en oyente del canal '{channel}'")

    def listener_count(self, channel: str) -> int:
        return len(self._listeners[channel])
