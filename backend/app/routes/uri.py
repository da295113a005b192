"""
Modulo de ruta para publicar la metadata JSON de un token.

POST /v1/uri recibe un contractId y un JSON con {image, url, description},
lo valida y lo publica en token/<contractId>/uri.json. Wallets y
exploradores leen ese archivo desde el CDN.

Como el archivo es inmutable (se cachea un ano en el CDN), la validacion
es estricta: URLs validas y descripcion de 1 a 500 caracteres.
"""

import json
import logging
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.requests import Request

from app.config import settings
from app.limiter import limiter
from app.models.schemas import PublishUriRequest, PublishUriResponse, UriJson
from app.services.s3 import s3_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/v1/uri", response_model=PublishUriResponse)
@limiter.limit("10/minute")
async def publish_uri(request: Request, body: PublishUriRequest):
    """
    Valida y publica el uri.json de un token.

    Raises (como respuestas JSON):
        400: el JSON no cumple el esquema (incluye el detalle).
        500: fallo al escribir en el bucket.
    """
    try:
        UriJson.model_validate(body.json_data)
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid JSON schema", "details": str(e)},
        )

    # Publicamos los valores tal como llegaron (Pydantic normaliza las URLs,
    # por ejemplo agregando "/" al final) y descartamos campos extra.
    document = {field: body.json_data[field] for field in UriJson.model_fields}

    # "$ZRA+0000" -> "%24ZRA%2B0000": el contractId puede tener caracteres
    # que no son seguros en una key / URL.
    encoded_contract_id = quote(body.contract_id, safe="")
    key = f"token/{encoded_contract_id}/uri.json"

    try:
        s3_service.put(
            key,
            json.dumps(document, indent=2),
            "application/json; charset=utf-8",
            cache_control=settings.URI_CACHE_CONTROL,
        )
    except (BotoCoreError, ClientError):
        logger.exception("Failed to store URI JSON at %s", key)
        return JSONResponse(status_code=500, content={"error": "Failed to store URI JSON"})

    return PublishUriResponse(cdn_url=f"{settings.CDN_BASE_URL}/{key}")
