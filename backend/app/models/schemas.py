"""
Modulo de esquemas (schemas) de datos de la API.

Define la ESTRUCTURA EXACTA de lo que entra y sale de cada endpoint usando
Pydantic. Si el cliente envia un body mal formado, FastAPI responde 422
automaticamente antes de ejecutar nuestro codigo.

Los nombres de los campos JSON estan en camelCase (pathHint, cdnUrl) porque
asi los consume el frontend existente. En Python usamos snake_case y
Pydantic traduce con `alias`.
"""

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class CamelModel(BaseModel):
    """Base que acepta y emite los nombres en camelCase."""
    model_config = ConfigDict(populate_by_name=True)


class InitUploadRequest(CamelModel):
    """
    Body de POST /v1/uploads/init.

    Atributos:
        ext (str): Extension del archivo ("png", "pdf", ...).
        path_hint (str): Destino logico. "governance" (por defecto) o
            "tokens/<contractId>".
        filename (str | None): Nombre original, usado para construir el
            nombre final del objeto.
    """
    ext: str
    path_hint: str = Field("governance", alias="pathHint")
    filename: str | None = None


class InitUploadResponse(CamelModel):
    key: str
    presigned_url: str = Field(alias="presignedUrl")
    cdn_url: str = Field(alias="cdnUrl")
    max_size_bytes: int = Field(alias="maxSizeBytes")


class CompleteUploadRequest(BaseModel):
    key: str


class CompleteUploadResponse(CamelModel):
    ok: bool = True
    cdn_url: str = Field(alias="cdnUrl")


class UriJson(BaseModel):
    """
    Metadata publica de un token.

    Es el contenido que se publica en token/<contractId>/uri.json y que
    leen wallets y exploradores.
    """
    image: HttpUrl
    url: HttpUrl
    description: str = Field(min_length=1, max_length=500)


class PublishUriRequest(CamelModel):
    """
    Body de POST /v1/uri.

    `json` se recibe como dict generico y se valida contra UriJson dentro
    del endpoint, para poder responder 400 con el detalle del error (en
    vez del 422 generico de FastAPI).
    """
    contract_id: str = Field(alias="contractId")
    json_data: dict = Field(alias="json")


class PublishUriResponse(CamelModel):
    cdn_url: str = Field(alias="cdnUrl")


class RateLimitErrorResponse(CamelModel):
    """Body de las respuestas 429 del limitador de subidas."""
    error: str
    message: str
    limit_type: str = Field(alias="limitType")
    remaining: int
    reset_time: int = Field(alias="resetTime")


class FileLimitStatus(CamelModel):
    used: int
    limit: int
    remaining: int
    reset_time: int = Field(alias="resetTime")
    reset_in: str = Field(alias="resetIn")


class DataLimitStatus(FileLimitStatus):
    used_formatted: str = Field(alias="usedFormatted")
    limit_formatted: str = Field(alias="limitFormatted")
    remaining_formatted: str = Field(alias="remainingFormatted")


class RateLimitStatusResponse(BaseModel):
    files: FileLimitStatus
    data: DataLimitStatus
