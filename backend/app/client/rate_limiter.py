"""
Limitador de subidas del lado del cliente.

Es un ESPEJO del limitador del servidor (mismos limites, mismo algoritmo:
SlidingWindowLimiter) pero con dos diferencias:

1. Hay un solo cliente (esta maquina), asi que los metodos no reciben
   identificador.
2. El estado se guarda en un archivo local (LocalStorage) en vez de en
   memoria, para que sobreviva entre ejecuciones.

Es SOLO orientativo: sirve para avisar al usuario antes de hacer una
peticion que de todas formas seria rechazada. Cualquiera puede borrar el
archivo local, por eso el servidor vuelve a aplicar los limites por su
cuenta y es la unica fuente de verdad.

Si el almacenamiento local falla (archivo corrupto, permisos, disco
lleno...), el limitador actua como si no hubiera historial y deja pasar
todo. Preferimos no bloquear al usuario por un problema local.
"""

import json
import logging

from app.client.storage import LocalStorage
from app.services.rate_limiter import ClientWindow, LimitResult, LimitStatus, SlidingWindowLimiter, now_ms

logger = logging.getLogger(__name__)

STORAGE_KEY = "zerafile_rate_limit"

# Identificador implicito del unico cliente local.
LOCAL_IDENTIFIER = "local"


class LocalStorageWindowStore:
    """
    Guarda un unico ClientWindow como JSON bajo una clave fija.

    Formato persistido:
        {"files": [{"timestamp": ..., "size": ...}], "data": [...]}
    """

    def __init__(self, storage: LocalStorage, key: str = STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self, identifier: str) -> ClientWindow:
        try:
            raw = self.storage.get_item(self.key)
            if raw:
                return ClientWindow.from_dict(json.loads(raw))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Ignoring unreadable rate limit state: %s", e)
        return ClientWindow()

    def save(self, identifier: str, window: ClientWindow) -> None:
        try:
            self.storage.set_item(self.key, json.dumps(window.to_dict()))
        except OSError as e:
            logger.debug("Could not persist rate limit state: %s", e)

    def identifiers(self) -> list[str]:
        return [LOCAL_IDENTIFIER]


class ClientRateLimiter:
    """
    Fachada del limitador para un solo cliente.

    Parametros:
        storage: LocalStorage a usar. Por defecto el archivo configurado en
            settings.CLIENT_STORAGE_PATH.
        clock: reloj en epoch ms (inyectable en tests).
    """

    def __init__(self, storage: LocalStorage | None = None, clock=now_ms):
        self.storage = storage or LocalStorage()
        self.limiter = SlidingWindowLimiter(LocalStorageWindowStore(self.storage), clock=clock)

    def check_file_limit(self) -> LimitResult:
        return self.limiter.check_file_limit(LOCAL_IDENTIFIER)

    def check_data_limit(self, size: int) -> LimitResult:
        return self.limiter.check_data_limit(LOCAL_IDENTIFIER, size)

    def record_upload(self, size: int) -> None:
        self.limiter.record_upload(LOCAL_IDENTIFIER, size)

    def get_status(self) -> dict[str, LimitStatus]:
        return self.limiter.get_status(LOCAL_IDENTIFIER)

    def reset(self) -> None:
        """Borra el historial local (el servidor conserva el suyo)."""
        try:
            self.storage.remove_item(STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.debug("Could not reset rate limit state: %s", e)
