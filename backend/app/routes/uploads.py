"""
Modulo de rutas para subida de archivos.

La subida se hace en DOS pasos, con el archivo viajando directo al bucket:

    1. POST /v1/uploads/init      -> Pide una URL prefirmada
    (el cliente hace PUT del archivo a esa URL)
    2. POST /v1/uploads/complete  -> Confirma la subida

Limites aplicados:
------------------
- SlowAPI: maximo 20 peticiones por minuto por IP en cada endpoint.
- Limite de ARCHIVOS (10 / 30 min): se chequea en /init, antes de firmar.
- Limite de VOLUMEN (20 MB / 10 min): se chequea en /complete, porque
  recien ahi conocemos el tamano REAL del objeto (lo reporta S3, no el
  cliente).
- La subida se REGISTRA en el limitador solo al final de /complete, cuando
  ya verificamos que el objeto existe y es valido. Un intento abandonado a
  mitad de camino no consume cupo.

Respuestas de error:
--------------------
El frontend espera bodies con la forma {"error": "..."} (y para el 429,
ademas limitType, remaining y resetTime), asi que aqui respondemos con
JSONResponse en vez de HTTPException.
"""

import logging
import os

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from app.config import settings
from app.limiter import get_client_identifier, get_upload_limiter, limiter
from app.models.schemas import (
    CompleteUploadRequest,
    CompleteUploadResponse,
    InitUploadRequest,
    InitUploadResponse,
    RateLimitErrorResponse,
)
from app.services.files import cdn_url_for_key, generate_id, is_allowed_ext, mime_for_ext, normalize_ext
from app.services.formatting import format_bytes, format_time_until_reset
from app.services.rate_limiter import MINUTE_MS, LimitResult, SlidingWindowLimiter
from app.services.s3 import s3_service

logger = logging.getLogger(__name__)

router = APIRouter()


def rate_limit_response(limit_type: str, result: LimitResult, upload_limiter: SlidingWindowLimiter) -> JSONResponse:
    """Construye la respuesta 429 comun a ambos limites."""
    retry_in = format_time_until_reset(result.reset_time, now=upload_limiter.clock())
    if limit_type == "files":
        minutes = upload_limiter.file_window_ms // MINUTE_MS
        message = (
            f"Upload limit reached: you can upload up to {upload_limiter.file_limit} files "
            f"every {minutes} minutes. Try again in {retry_in}."
        )
    else:
        minutes = upload_limiter.data_window_ms // MINUTE_MS
        message = (
            f"Data limit reached: you can upload up to {format_bytes(upload_limiter.data_limit)} "
            f"every {minutes} minutes ({format_bytes(result.remaining)} remaining). "
            f"Try again in {retry_in}."
        )
    body = RateLimitErrorResponse(
        error="Rate limit exceeded",
        message=message,
        limit_type=limit_type,
        remaining=result.remaining,
        reset_time=result.reset_time,
    )
    return JSONResponse(status_code=429, content=body.model_dump(by_alias=True))


def build_object_key(path_hint: str, ext: str, filename: str | None) -> str:
    """
    Decide la key del objeto segun el destino.

    - "tokens/<contractId>": se respeta el nombre original (los tokens
      suelen tener archivos con nombres fijos como "image.png").
      Key: token/<contractId>/<archivo>
    - cualquier otro: se agrega un sufijo aleatorio para evitar que dos
      documentos con el mismo nombre se pisen.
      Key: <pathHint>/<nombre>-<id>.<ext>
    """
    if path_hint.startswith("tokens/"):
        final_filename = filename or f"{generate_id()}.{ext}"
        contract_id = path_hint.split("/")[1]
        return f"token/{contract_id}/{final_filename}"

    # "informe.final.pdf" -> "informe.final"
    base_name = filename.rsplit(".", 1)[0] if filename and "." in filename else (filename or generate_id())
    final_filename = f"{base_name}-{generate_id()}.{ext}"
    return f"{path_hint}/{final_filename}"


@router.post("/v1/uploads/init", response_model=InitUploadResponse)
@limiter.limit("20/minute")
async def init_upload(
    request: Request,
    body: InitUploadRequest,
    upload_limiter: SlidingWindowLimiter = Depends(get_upload_limiter),
):
    """
    Paso 1: valida la extension, chequea el cupo de archivos y firma una
    URL PUT para que el cliente suba directo al bucket.

    Raises (como respuestas JSON):
        400: extension no permitida, o filename con otra extension.
        429: el cliente ya subio 10 archivos en los ultimos 30 minutos.
        500: fallo al firmar la URL.
    """
    ext = normalize_ext(body.ext)
    if not is_allowed_ext(ext):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid file extension", "allowed": list(settings.EXT_TO_MIME)},
        )

    # "../../x.pdf" -> "x.pdf": el nombre no puede escapar de su prefijo.
    filename = os.path.basename(body.filename) if body.filename else None
    # El nombre debe tener el mismo tipo que se firma ("uri.json" no pasa como png).
    if filename and mime_for_ext(os.path.splitext(filename)[1]) != mime_for_ext(ext):
        return JSONResponse(
            status_code=400,
            content={"error": "Filename does not match file extension"},
        )

    identifier = get_client_identifier(request)
    file_check = upload_limiter.check_file_limit(identifier)
    if not file_check.allowed:
        logger.info("File limit reached for %s", identifier)
        return rate_limit_response("files", file_check, upload_limiter)

    try:
        key = build_object_key(body.path_hint, ext, filename)
        presigned_url = s3_service.presign_put(key, mime_for_ext(ext))
    except (BotoCoreError, ClientError):
        logger.exception("Failed to generate upload URL")
        return JSONResponse(status_code=500, content={"error": "Failed to generate upload URL"})

    return InitUploadResponse(
        key=key,
        presigned_url=presigned_url,
        cdn_url=cdn_url_for_key(key),
        max_size_bytes=settings.MAX_UPLOAD_SIZE,
    )


@router.post("/v1/uploads/complete", response_model=CompleteUploadResponse)
@limiter.limit("20/minute")
async def complete_upload(
    request: Request,
    body: CompleteUploadRequest,
    upload_limiter: SlidingWindowLimiter = Depends(get_upload_limiter),
):
    """
    Paso 2: verifica el objeto subido y registra el consumo de cupo.

    Orden de verificacion:
        1. El objeto existe (HEAD)                        -> 404
        2. Tamano <= 5 MB                                  -> 413
        3. Content-Type en la lista blanca                 -> 400
        4. Cabe en el cupo de volumen (20 MB / 10 min)     -> 429
        5. ACL publica (si falla, solo se registra warning)
        6. Se registra la subida en el limitador
    """
    key = body.key
    identifier = get_client_identifier(request)

    try:
        head = s3_service.head(key)
    except (BotoCoreError, ClientError):
        logger.exception("Failed to complete upload for %s", key)
        return JSONResponse(status_code=500, content={"error": "Failed to complete upload"})

    if head is None:
        return JSONResponse(status_code=404, content={"error": "File not found"})

    size = head.get("ContentLength") or 0
    if size > settings.MAX_UPLOAD_SIZE:
        return JSONResponse(status_code=413, content={"error": "File too large"})

    content_type = head.get("ContentType")
    if not content_type or content_type not in settings.ALLOWED_MIME_TYPES:
        return JSONResponse(status_code=400, content={"error": "Invalid file type"})

    data_check = upload_limiter.check_data_limit(identifier, size)
    if not data_check.allowed:
        logger.info("Data limit reached for %s (%s requested)", identifier, format_bytes(size))
        return rate_limit_response("data", data_check, upload_limiter)

    # La URL prefirmada ya incluye la ACL publica, pero algunos proveedores
    # la ignoran. Reintentamos aqui y seguimos aunque falle.
    try:
        s3_service.set_acl(key, "public-read")
    except (BotoCoreError, ClientError) as e:
        logger.warning("Failed to set ACL for %s: %s", key, e)

    upload_limiter.record_upload(identifier, size)

    return CompleteUploadResponse(ok=True, cdn_url=cdn_url_for_key(key))
