"""
Punto de entrada principal de la aplicacion FastAPI.

Aqui se:
1. Configura el logging.
2. Crea la instancia de la aplicacion FastAPI.
3. Configura los middlewares (CORS, rate limiting de peticiones).
4. Crea el limitador de subidas (archivos + bytes) de la app.
5. Registra todas las rutas.
6. Define el endpoint de health check.

Arquitectura de la aplicacion:
------------------------------
    main.py (punto de entrada)
        |
        +-- routes/         (Controladores: reciben HTTP requests)
        |    +-- uploads.py      /v1/uploads/init, /v1/uploads/complete
        |    +-- uri.py          /v1/uri
        |    +-- rate_limit.py   /v1/rate-limit/status
        |
        +-- services/       (Logica de negocio)
        |    +-- rate_limiter.py  (ventanas deslizantes por cliente)
        |    +-- formatting.py
        |    +-- files.py
        |    +-- s3.py
        |
        +-- models/schemas.py
        +-- client/         (cliente Python de la API, con su limitador local)
        +-- config.py
        +-- limiter.py
        +-- logging_config.py

El flujo de una peticion HTTP es:
    Cliente -> CORS -> SlowAPI -> Router -> Endpoint (-> limitador de subidas) -> Respuesta
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.limiter import limiter
from app.logging_config import setup_logging
from app.routes.rate_limit import router as rate_limit_router
from app.routes.uploads import router as uploads_router
from app.routes.uri import router as uri_router
from app.services.rate_limiter import MemoryWindowStore, SlidingWindowLimiter

setup_logging()

app = FastAPI(title="Zerafile API")

# ---------- Rate limiting ----------

# SlowAPI: limite de PETICIONES por minuto (ver limiter.py).
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Limitador de SUBIDAS: un registro en memoria por proceso. Vive en
# app.state (no como variable global del modulo) y las rutas lo reciben
# con Depends(get_upload_limiter). En tests se reemplaza por uno nuevo.
app.state.upload_limiter = SlidingWindowLimiter(MemoryWindowStore())

# ---------- CORS ----------

# Solo los metodos que la API (y el PUT directo al bucket) usan.
# ETag se expone para que el navegador pueda leerlo tras subir a S3.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "HEAD", "POST", "PUT"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)


@app.get("/health")
async def health_check():
    """
    Endpoint de verificacion de salud del servidor.

    Retorna:
        dict: {"status": "ok", "timestamp": "<ISO-8601 UTC>"}
    """
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(uploads_router)
app.include_router(uri_router)
app.include_router(rate_limit_router)


if __name__ == "__main__":
    # python -m app.main  (en produccion: uvicorn app.main:app)
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
