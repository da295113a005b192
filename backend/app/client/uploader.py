"""
Cliente Python de la API de Zerafile.

Reproduce el flujo que hace el frontend al subir un archivo:

    1. Validaciones locales (tamano, extension, formato del contractId)
    2. Limitador local: hay cupo de archivos y de bytes?
    3. POST /v1/uploads/init       -> URL prefirmada + key + cdnUrl
    4. PUT <presignedUrl>          -> el archivo va directo al bucket
    5. POST /v1/uploads/complete   -> el servidor verifica y registra
    6. Se registra la subida en el limitador local

El limitador local solo evita viajes de red inutiles. Si el servidor
responde 429 de todas formas (ej: el usuario borro su estado local), se
lanza ClientRateLimitError con los datos que envio el servidor.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import httpx

from app.client.rate_limiter import ClientRateLimiter
from app.config import settings
from app.services.files import is_allowed_ext, mime_for_ext, normalize_ext
from app.services.formatting import format_bytes, format_time_until_reset

logger = logging.getLogger(__name__)

# "$ZRA+0000" (4 digitos) o "$sol-SOL+000000" (6 digitos).
CONTRACT_ID_PATTERN = re.compile(r"^\$[a-zA-Z]+\+[0-9]{4}$|^\$sol-[a-zA-Z]+\+[0-9]{6}$")


class UploadError(Exception):
    """Error al subir o publicar (validacion local o respuesta de la API)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ClientRateLimitError(UploadError):
    """
    Se alcanzo un limite de subida, local o del servidor.

    Atributos:
        limit_type: "files" o "data".
        remaining: archivos o bytes que quedan en la ventana.
        reset_time: epoch ms en que se libera cupo.
    """

    def __init__(self, limit_type: str, remaining: int, reset_time: int, message: str | None = None):
        if message is None:
            wait = format_time_until_reset(reset_time)
            if limit_type == "files":
                message = f"File upload limit reached. Try again in {wait}."
            else:
                message = f"Data limit reached ({format_bytes(remaining)} remaining). Try again in {wait}."
        super().__init__(message, status_code=429)
        self.limit_type = limit_type
        self.remaining = remaining
        self.reset_time = reset_time


@dataclass
class UploadResult:
    key: str
    cdn_url: str
    filename: str
    size: int


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or body.get("detail") or fallback
    return fallback


class UploadClient:
    """
    Parametros:
        api_base: URL base de la API. Por defecto settings.API_BASE.
        http: httpx.Client a usar (en tests, uno con MockTransport).
        limiter: limitador local. Por defecto uno sobre el archivo de
            settings.CLIENT_STORAGE_PATH.
    """

    def __init__(
        self,
        api_base: str | None = None,
        http: httpx.Client | None = None,
        limiter: ClientRateLimiter | None = None,
    ):
        self.api_base = (api_base or settings.API_BASE).rstrip("/")
        self.http = http or httpx.Client(timeout=30.0)
        self.limiter = limiter or ClientRateLimiter()

    def _check_response(self, response: httpx.Response, fallback: str) -> dict:
        if response.status_code == 429:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and "limitType" in body:
                raise ClientRateLimitError(
                    body["limitType"],
                    body.get("remaining", 0),
                    body.get("resetTime", 0),
                    message=body.get("message"),
                )
            raise UploadError(_error_message(response, "Too many requests"), status_code=429)
        if response.is_error:
            raise UploadError(_error_message(response, fallback), status_code=response.status_code)
        return response.json()

    def upload(self, path: str | Path, path_hint: str = "governance", contract_id: str | None = None) -> UploadResult:
        """
        Sube un archivo y retorna su URL publica.

        Parametros:
            path: archivo local.
            path_hint: "governance" o "tokens".
            contract_id: requerido si path_hint es "tokens".

        Raises:
            ClientRateLimitError: limite local o del servidor alcanzado.
            UploadError: validacion local fallida o error de la API.
        """
        path = Path(path)

        if path_hint == "tokens":
            if not contract_id or not CONTRACT_ID_PATTERN.match(contract_id):
                raise UploadError("Invalid contract ID format. Must be $ZRA+0000 or $sol-SOL+000000")
            path_hint = f"tokens/{contract_id}"

        size = path.stat().st_size
        if size > settings.MAX_UPLOAD_SIZE:
            raise UploadError(
                f"File size must be less than {format_bytes(settings.MAX_UPLOAD_SIZE)}. "
                f"Current size: {format_bytes(size)}"
            )

        ext = normalize_ext(path.suffix)
        if not ext or not is_allowed_ext(ext):
            raise UploadError(f"Invalid file type. Supported: {', '.join(settings.EXT_TO_MIME)}")

        # --- Chequeo local antes de tocar la red ---
        file_check = self.limiter.check_file_limit()
        if not file_check.allowed:
            raise ClientRateLimitError("files", file_check.remaining, file_check.reset_time)
        data_check = self.limiter.check_data_limit(size)
        if not data_check.allowed:
            raise ClientRateLimitError("data", data_check.remaining, data_check.reset_time)

        # --- Paso 1: init ---
        init = self._check_response(
            self.http.post(
                f"{self.api_base}/v1/uploads/init",
                json={"ext": ext, "pathHint": path_hint, "filename": path.name},
            ),
            "Failed to initialize upload",
        )

        # --- Paso 2: PUT directo al bucket ---
        # El Content-Type debe coincidir con el que se uso al firmar la URL.
        put = self.http.put(
            init["presignedUrl"],
            content=path.read_bytes(),
            headers={"Content-Type": mime_for_ext(ext)},
        )
        if put.is_error:
            raise UploadError(
                f"Failed to upload file: {put.status_code} {put.reason_phrase}",
                status_code=put.status_code,
            )

        # --- Paso 3: complete ---
        complete = self._check_response(
            self.http.post(f"{self.api_base}/v1/uploads/complete", json={"key": init["key"]}),
            "Failed to complete upload",
        )

        self.limiter.record_upload(size)
        logger.info("Uploaded %s (%s) to %s", path.name, format_bytes(size), init["key"])

        return UploadResult(
            key=init["key"],
            cdn_url=complete.get("cdnUrl") or init["cdnUrl"],
            filename=path.name,
            size=size,
        )

    def publish_uri(self, contract_id: str, payload: dict) -> str:
        """Publica el uri.json de un token y retorna su URL en el CDN."""
        body = self._check_response(
            self.http.post(f"{self.api_base}/v1/uri", json={"contractId": contract_id, "json": payload}),
            "Failed to store URI JSON",
        )
        return body["cdnUrl"]

    def status(self) -> dict:
        """Uso de limites segun el SERVIDOR (la fuente de verdad)."""
        return self._check_response(
            self.http.get(f"{self.api_base}/v1/rate-limit/status"),
            "Failed to fetch rate limit status",
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
