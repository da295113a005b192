"""
Modulo del limitador de subidas por ventana deslizante (sliding window).

A diferencia de SlowAPI (ver limiter.py), que solo cuenta PETICIONES por
minuto, este limitador controla dos "presupuestos" independientes por
cliente:

    1. Cantidad de archivos: maximo 10 subidas cada 30 minutos.
    2. Volumen de datos: maximo 20 MB cada 10 minutos.

Usamos dos ventanas de distinto tamano a proposito: la ventana de volumen
es corta y estricta (frena rafagas de muchos MB), mientras que la de
archivos es larga (permite un goteo lento de archivos pequenos).

Que es una ventana deslizante?
------------------------------
Guardamos un registro (log) de eventos con su timestamp. En cada consulta
descartamos los eventos mas viejos que la ventana y contamos/sumamos los
que quedan. La ventana "se desliza" con el reloj: no hay reinicios fijos
cada media hora, siempre se mira el intervalo [ahora - ventana, ahora].

Patron de diseno: Estrategia de almacenamiento (Strategy)
---------------------------------------------------------
El algoritmo es UNO solo (SlidingWindowLimiter), pero el lugar donde vive
el estado es intercambiable:
    - MemoryWindowStore: diccionario en memoria, una entrada por IP (servidor).
    - LocalStorageWindowStore: un archivo JSON local, un solo cliente
      (ver app/client/rate_limiter.py).

Concurrencia:
-------------
FastAPI ejecuta los endpoints async en un unico event loop. Ninguna
operacion de este modulo hace `await`, asi que cada chequeo o registro
corre completo sin que otra peticion se intercale. No necesitamos locks.
Si se usara desde endpoints sincronos (thread pool), habria que proteger
el registro con un threading.Lock.

Limitacion conocida: el chequeo (en /init) y el registro (en /complete)
son dos pasos separados, con la transferencia a S3 en medio. Dos subidas
concurrentes del mismo cliente pueden pasar ambas el chequeo antes de que
alguna se registre. Es un limite "blando", aceptado.
"""

import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# ---------- Limites fijos ----------

# Trabajamos en milisegundos (epoch ms) porque es el formato que viaja
# en las respuestas JSON (resetTime) y en el estado persistido del cliente.
MINUTE_MS = 60 * 1000

FILE_LIMIT = 10
FILE_WINDOW_MS = 30 * MINUTE_MS

DATA_LIMIT = 20 * 1024 * 1024  # 20 MB
DATA_WINDOW_MS = 10 * MINUTE_MS


def now_ms() -> int:
    """Reloj por defecto: tiempo actual en milisegundos desde epoch."""
    return int(time.time() * 1000)


@dataclass
class WindowEvent:
    """Una subida registrada: cuando ocurrio (epoch ms) y cuantos bytes pesaba."""
    timestamp: int
    size: int


@dataclass
class ClientWindow:
    """
    Estado de un cliente: dos logs de eventos, ordenados del mas viejo
    al mas nuevo.

    Atributos:
        files: eventos usados para el limite de CANTIDAD de archivos.
        data: eventos usados para el limite de VOLUMEN de datos.

    Cada subida agrega el mismo evento a ambas listas, pero cada lista
    se poda con su propia ventana (30 min vs 10 min).
    """
    files: list[WindowEvent] = field(default_factory=list)
    data: list[WindowEvent] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.files and not self.data

    def to_dict(self) -> dict:
        return {
            "files": [{"timestamp": e.timestamp, "size": e.size} for e in self.files],
            "data": [{"timestamp": e.timestamp, "size": e.size} for e in self.data],
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "ClientWindow":
        # Lanza KeyError/TypeError/ValueError si la forma no es la esperada;
        # el caller decide que hacer (el cliente lo trata como estado vacio).
        return cls(
            files=[WindowEvent(int(e["timestamp"]), int(e["size"])) for e in raw["files"]],
            data=[WindowEvent(int(e["timestamp"]), int(e["size"])) for e in raw["data"]],
        )


@dataclass
class LimitResult:
    """
    Respuesta de un chequeo de admision.

    Atributos:
        allowed: True si la operacion puede continuar.
        remaining: cuantos archivos (o bytes) quedan en la ventana actual.
        reset_time: epoch ms en el que expira el evento mas viejo contado,
            o ahora + ventana si no hay eventos.
    """
    allowed: bool
    remaining: int
    reset_time: int


@dataclass
class LimitStatus:
    """Foto de solo lectura de un presupuesto (archivos o datos)."""
    used: int
    limit: int
    remaining: int
    reset_time: int


class MemoryWindowStore:
    """
    Registro en memoria: {identificador de cliente: ClientWindow}.

    Es el almacenamiento del servidor. Se pierde al reiniciar el proceso,
    lo cual es aceptable: en el peor caso un cliente recupera su cupo antes.
    """

    def __init__(self):
        self.registry: dict[str, ClientWindow] = {}

    def load(self, identifier: str) -> ClientWindow:
        return self.registry.get(identifier) or ClientWindow()

    def save(self, identifier: str, window: ClientWindow) -> None:
        # Una entrada sin eventos se elimina: asi la memoria solo crece
        # con los clientes que tienen actividad reciente.
        if window.is_empty():
            self.registry.pop(identifier, None)
        else:
            self.registry[identifier] = window

    def identifiers(self) -> list[str]:
        return list(self.registry)


class SlidingWindowLimiter:
    """
    Limitador de doble ventana deslizante.

    Parametros:
        store: donde se guarda el estado (MemoryWindowStore o equivalente
            con load/save/identifiers).
        file_limit, file_window_ms: cupo de archivos y su ventana.
        data_limit, data_window_ms: cupo de bytes y su ventana.
        clock: funcion que retorna el tiempo actual en epoch ms. En tests
            pasamos un reloj falso para controlar el tiempo.

    Cada operacion poda PRIMERO el estado del cliente consultado (garbage
    collection perezoso, disparado por acceso). No hay hilo de limpieza:
    un cliente que nunca vuelve deja su entrada hasta el proximo acceso,
    o hasta que alguien llame a sweep().
    """

    def __init__(
        self,
        store=None,
        file_limit: int = FILE_LIMIT,
        file_window_ms: int = FILE_WINDOW_MS,
        data_limit: int = DATA_LIMIT,
        data_window_ms: int = DATA_WINDOW_MS,
        clock=now_ms,
    ):
        self.store = store if store is not None else MemoryWindowStore()
        self.file_limit = file_limit
        self.file_window_ms = file_window_ms
        self.data_limit = data_limit
        self.data_window_ms = data_window_ms
        self.clock = clock

    def _prune(self, identifier: str, now: int) -> ClientWindow:
        """
        Descarta los eventos fuera de su ventana y guarda el resultado.

        Se conserva un evento si `now - timestamp < ventana`. Un evento
        registrado en T deja de contar exactamente en T + ventana.
        """
        window = self.store.load(identifier)
        window.files = [e for e in window.files if now - e.timestamp < self.file_window_ms]
        window.data = [e for e in window.data if now - e.timestamp < self.data_window_ms]
        self.store.save(identifier, window)
        return window

    def _reset_time(self, events: list[WindowEvent], window_ms: int, now: int) -> int:
        # Los eventos estan en orden de insercion, el primero es el mas viejo.
        return events[0].timestamp + window_ms if events else now + window_ms

    def check_file_limit(self, identifier: str) -> LimitResult:
        """
        Puede este cliente subir UN archivo mas?

        Cada archivo cuesta exactamente 1, sin importar su tamano, por eso
        solo miramos cuantos hay ya en la ventana.
        """
        now = self.clock()
        window = self._prune(identifier, now)
        used = len(window.files)
        return LimitResult(
            allowed=used < self.file_limit,
            remaining=max(0, self.file_limit - used),
            reset_time=self._reset_time(window.files, self.file_window_ms, now),
        )

    def check_data_limit(self, identifier: str, size: int) -> LimitResult:
        """
        Cabe un archivo de `size` bytes en el cupo de volumen?

        A diferencia del chequeo de archivos, aqui SI importa el candidato:
        se rechaza si lo ya usado + size supera el limite. Llegar justo al
        limite esta permitido.
        """
        now = self.clock()
        window = self._prune(identifier, now)
        used = sum(e.size for e in window.data)
        return LimitResult(
            allowed=used + size <= self.data_limit,
            remaining=max(0, self.data_limit - used),
            reset_time=self._reset_time(window.data, self.data_window_ms, now),
        )

    def record_upload(self, identifier: str, size: int) -> None:
        """
        Registra una subida confirmada en ambos logs.

        Solo debe llamarse DESPUES de verificar que el objeto existe en S3.
        Si registraramos antes, un intento fallido consumiria cupo.
        """
        now = self.clock()
        window = self._prune(identifier, now)
        window.files.append(WindowEvent(timestamp=now, size=size))
        window.data.append(WindowEvent(timestamp=now, size=size))
        self.store.save(identifier, window)
        logger.debug("Recorded upload of %d bytes for %s", size, identifier)

    def get_status(self, identifier: str) -> dict[str, LimitStatus]:
        """Uso actual de ambos presupuestos, sin consumir nada."""
        now = self.clock()
        window = self._prune(identifier, now)
        files_used = len(window.files)
        data_used = sum(e.size for e in window.data)
        return {
            "files": LimitStatus(
                used=files_used,
                limit=self.file_limit,
                remaining=max(0, self.file_limit - files_used),
                reset_time=self._reset_time(window.files, self.file_window_ms, now),
            ),
            "data": LimitStatus(
                used=data_used,
                limit=self.data_limit,
                remaining=max(0, self.data_limit - data_used),
                reset_time=self._reset_time(window.data, self.data_window_ms, now),
            ),
        }

    def sweep(self) -> int:
        """
        Poda TODOS los clientes del registro y retorna cuantos se eliminaron.

        Complemento opcional del GC perezoso para despliegues con muchas IPs
        que no regresan. Nadie lo agenda automaticamente.
        """
        now = self.clock()
        removed = 0
        for identifier in self.store.identifiers():
            if self._prune(identifier, now).is_empty():
                removed += 1
        if removed:
            logger.info("Rate limiter sweep removed %d idle clients", removed)
        return removed
