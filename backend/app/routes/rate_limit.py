"""
Modulo de ruta para consultar el uso de los limites de subida.

GET /v1/rate-limit/status permite al frontend mostrar cuanto cupo le queda
al usuario ("3 de 10 archivos", "12.5 MB de 20.0 MB") ANTES de intentar una
subida. Es de solo lectura: consultar no consume cupo.
"""

from fastapi import APIRouter, Depends
from starlette.requests import Request

from app.limiter import get_client_identifier, get_upload_limiter
from app.models.schemas import DataLimitStatus, FileLimitStatus, RateLimitStatusResponse
from app.services.formatting import format_bytes, format_time_until_reset
from app.services.rate_limiter import SlidingWindowLimiter

router = APIRouter()


@router.get("/v1/rate-limit/status", response_model=RateLimitStatusResponse)
async def rate_limit_status(
    request: Request,
    upload_limiter: SlidingWindowLimiter = Depends(get_upload_limiter),
):
    status = upload_limiter.get_status(get_client_identifier(request))
    now = upload_limiter.clock()
    files = status["files"]
    data = status["data"]

    return RateLimitStatusResponse(
        files=FileLimitStatus(
            used=files.used,
            limit=files.limit,
            remaining=files.remaining,
            reset_time=files.reset_time,
            reset_in=format_time_until_reset(files.reset_time, now=now),
        ),
        data=DataLimitStatus(
            used=data.used,
            limit=data.limit,
            remaining=data.remaining,
            reset_time=data.reset_time,
            reset_in=format_time_until_reset(data.reset_time, now=now),
            used_formatted=format_bytes(data.used),
            limit_formatted=format_bytes(data.limit),
            remaining_formatted=format_bytes(data.remaining),
        ),
    )
