"""
Almacenamiento clave-valor local y persistente para el cliente.

Imita la API de `localStorage` del navegador: claves y valores son strings
y todo se guarda en un unico archivo JSON en disco, asi el estado
sobrevive entre ejecuciones del cliente.

Los errores de disco (OSError) y de formato (ValueError) se PROPAGAN: es
el caller quien decide si un fallo de almacenamiento es grave o no.
"""

import json
from pathlib import Path

from app.config import settings


class LocalStorage:
    """
    Archivo JSON de la forma {"clave": "valor string", ...}.

    Parametros:
        path: ruta del archivo. Por defecto settings.CLIENT_STORAGE_PATH.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.CLIENT_STORAGE_PATH)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Escribimos a un temporal y renombramos: si el proceso muere a
        # mitad de la escritura, el archivo original queda intacto.
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except ValueError:
            # Un archivo corrupto se reemplaza en vez de bloquear toda escritura.
            data = {}
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)
