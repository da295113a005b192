"""
Configuracion centralizada de logging.

Se llama a ``setup_logging()`` una sola vez al arrancar (desde main.py).
Cada modulo obtiene su propio logger con::

    import logging
    logger = logging.getLogger(__name__)
"""

import json
import logging
import sys
from datetime import datetime, timezone

from app.config import settings


class JsonFormatter(logging.Formatter):
    """
    Un objeto JSON por linea.

    El mensaje se serializa con json.dumps, asi que comillas o saltos de
    linea en valores que vienen del cliente (keys, X-Forwarded-For) no
    rompen la linea. Los tracebacks van dentro del campo "exc_info".
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def setup_logging() -> None:
    """
    Configura el logger raiz.

    - LOG_FORMAT=json (por defecto): una linea JSON por registro,
      comoda para CloudWatch, Datadog, etc.
    - LOG_FORMAT=text: formato legible para desarrollo local.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )

    root = logging.getLogger()
    # Evita handlers duplicados cuando uvicorn recarga la app.
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # botocore es muy verboso en DEBUG.
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
