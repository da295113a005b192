"""
Utilidades de tipos de archivo e identificadores.

- Mapeo extension -> tipo MIME (lista blanca definida en config.py).
- Generacion de IDs aleatorios base62 para nombres de archivo unicos.
- Construccion de URLs publicas del CDN a partir de keys de S3.
"""

import secrets
import string

from app.config import settings

BASE62 = string.digits + string.ascii_uppercase + string.ascii_lowercase


def normalize_ext(ext: str) -> str:
    """".PNG" -> "png"."""
    return ext.lower().lstrip(".")


def is_allowed_ext(ext: str) -> bool:
    return normalize_ext(ext) in settings.EXT_TO_MIME


def mime_for_ext(ext: str) -> str:
    """Tipo MIME de una extension, o "application/octet-stream" si no es conocida."""
    return settings.EXT_TO_MIME.get(normalize_ext(ext), "application/octet-stream")


def generate_id(length: int = 12) -> str:
    """
    ID aleatorio base62 (0-9, A-Z, a-z).

    Con 12 caracteres hay 62^12 (~3.2 x 10^21) combinaciones, suficiente
    para que dos archivos con el mismo nombre no choquen.
    """
    return "".join(secrets.choice(BASE62) for _ in range(length))


def cdn_url_for_key(key: str) -> str:
    """
    URL publica de un objeto a partir de su key.

    Estructura de keys:
        governance/<archivo>                -> <CDN>/governance/<archivo>
        token/<contractId>/<archivo>        -> <CDN>/token/<contractId>/<archivo>
        <otro prefijo>/<archivo>            -> <CDN>/<otro prefijo>/<archivo>
    """
    parts = key.split("/")
    filename = parts[-1]
    prefix = parts[0]
    if prefix == "governance":
        return f"{settings.CDN_BASE_URL}/governance/{filename}"
    if prefix == "token" and len(parts) > 2:
        return f"{settings.CDN_BASE_URL}/token/{parts[1]}/{filename}"
    return f"{settings.CDN_BASE_URL}/{prefix}/{filename}"
