"""
Modulo de limitacion de tasa de peticiones.

Aqui viven dos cosas relacionadas:

1. `get_client_identifier`: como identificamos a un cliente. Es la "clave"
   tanto para SlowAPI como para el limitador de subidas.
2. `limiter`: instancia de SlowAPI que frena rafagas de PETICIONES por
   endpoint (ej: "20/minute" en /v1/uploads/init).

El limitador de ARCHIVOS y BYTES por cliente (10 archivos / 30 min,
20 MB / 10 min) es otra cosa: vive en app/services/rate_limiter.py y
la app guarda su instancia en `app.state.upload_limiter`. Las rutas lo
reciben via la dependencia `get_upload_limiter`, lo que permite a los
tests inyectar un limitador nuevo en cada caso.
"""

from slowapi import Limiter
from starlette.requests import Request

from app.services.rate_limiter import SlidingWindowLimiter


def get_client_identifier(request: Request) -> str:
    """
    Identifica al cliente por la mejor direccion de red disponible.

    Orden de prioridad:
        1. IP del peer directo (request.client.host)
        2. Header X-Forwarded-For (lo agregan proxies / load balancers)
        3. Header X-Real-IP (Nginx)
        4. "unknown"

    NOTA DE SEGURIDAD: los headers se pueden falsificar. Esto es una
    heuristica, no una frontera de seguridad: confiamos en que la
    infraestructura delante de la API los escriba correctamente.
    """
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return "unknown"


def get_upload_limiter(request: Request) -> SlidingWindowLimiter:
    """Dependencia de FastAPI: el limitador de subidas propio de la app."""
    return request.app.state.upload_limiter


# Contadores de peticiones en memoria (un dict interno de "limits").
limiter = Limiter(key_func=get_client_identifier)
