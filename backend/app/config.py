"""
Modulo de configuracion centralizada de la aplicacion.

Todas las constantes y variables de entorno que el backend necesita viven
aqui. Asi la misma aplicacion corre en desarrollo, staging y produccion
cambiando solo el entorno, sin tocar el codigo.

Almacenamiento: usamos un servicio compatible con S3 (DigitalOcean Spaces).
Por eso, ademas del bucket y la region, necesitamos un endpoint propio y
credenciales estaticas. Los archivos se sirven publicamente desde un CDN
(CDN_BASE_URL) que apunta al mismo bucket.

Patron de diseno: **Singleton implicito**
La instancia `settings` se crea UNA vez al importar el modulo; todos los
`from app.config import settings` reciben la misma.
"""

import os


class Settings:
    """
    Configuracion de la API.

    Los limites de subida por cliente (10 archivos / 30 min, 20 MB / 10 min)
    NO estan aqui: son constantes fijas de app/services/rate_limiter.py y
    no se pueden cambiar por entorno.
    """

    # ---------- Object storage (S3 compatible) ----------

    # Endpoint del proveedor, ej: "https://nyc3.digitaloceanspaces.com".
    # Si esta vacio, boto3 usa el endpoint de AWS segun la region.
    SPACES_ENDPOINT: str | None = os.getenv("SPACES_ENDPOINT") or None
    SPACES_REGION: str = os.getenv("SPACES_REGION", "us-east-1")
    SPACES_BUCKET: str = os.getenv("SPACES_BUCKET", "zerafile")

    # Credenciales del proveedor. Si no se definen, boto3 las busca en su
    # cadena habitual (variables AWS_*, ~/.aws/credentials, etc.).
    SPACES_KEY: str | None = os.getenv("SPACES_KEY") or None
    SPACES_SECRET: str | None = os.getenv("SPACES_SECRET") or None

    # URL publica desde la que se sirven los objetos.
    CDN_BASE_URL: str = os.getenv("CDN_BASE_URL", "https://cdn.zerafile.io").rstrip("/")

    # ---------- Servidor ----------

    PORT: int = int(os.getenv("PORT", "8080"))

    # Origenes permitidos para CORS, separados por coma.
    CORS_ORIGINS: list[str] = os.getenv(
        "CORS_ORIGINS",
        "https://zerafile.io,https://api.zerafile.io,http://localhost:3000",
    ).split(",")

    # ---------- Logging ----------

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # "json" para agregadores de logs, "text" para desarrollo local.
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")

    # ---------- Subidas ----------

    # Tamano maximo absoluto de un archivo: 5 MB (decimal, 5,000,000 bytes).
    # Se verifica en /complete con el tamano REAL reportado por S3.
    MAX_UPLOAD_SIZE: int = 5_000_000

    # Segundos de validez de una URL prefirmada.
    PRESIGN_EXPIRES: int = 300

    # Lista blanca de extensiones -> tipo MIME con el que se firma la subida.
    EXT_TO_MIME: dict[str, str] = {
        "pdf": "application/pdf",
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "gif": "image/gif",
        "webp": "image/webp",
        "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }

    # Tipos MIME aceptados al confirmar la subida (Content-Type del objeto en S3).
    ALLOWED_MIME_TYPES: list[str] = list(dict.fromkeys(EXT_TO_MIME.values()))

    # ---------- Metadata de tokens ----------

    # Los JSON publicados son inmutables: el CDN puede cachearlos un ano.
    URI_CACHE_CONTROL: str = "public, max-age=31536000, immutable"

    # ---------- Cliente (app/client, scripts/upload.py) ----------

    # URL base de la API a la que habla el cliente.
    API_BASE: str = os.getenv("ZERAFILE_API_BASE", "http://localhost:8080").rstrip("/")

    # Archivo donde el cliente guarda su estado local (equivalente al
    # localStorage del navegador).
    CLIENT_STORAGE_PATH: str = os.getenv(
        "ZERAFILE_STORAGE_PATH",
        os.path.join(os.path.expanduser("~"), ".zerafile", "storage.json"),
    )


settings = Settings()
