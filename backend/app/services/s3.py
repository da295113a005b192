"""
Modulo de servicio para el almacenamiento de objetos (S3 compatible).

Este modulo encapsula TODA la comunicacion con el bucket. Ningun otro
archivo deberia llamar directamente a boto3; todo pasa por este servicio.
Asi los tests solo necesitan mockear `s3_service`.

Flujo de subida con URL prefirmada (presigned URL):
---------------------------------------------------
Los bytes del archivo NUNCA pasan por nuestro servidor:

    1. El cliente pide permiso a /v1/uploads/init.
    2. Firmamos una URL PUT con validez de 5 minutos (presign_put).
    3. El cliente sube el archivo DIRECTO al bucket con esa URL.
    4. El cliente avisa a /v1/uploads/complete y verificamos con HEAD
       (head) que el objeto exista, su tamano y su tipo.

La firma criptografica la hace boto3 con nuestras credenciales; nosotros
solo decidimos bucket, key, Content-Type y ACL.

Estructura de keys:
    governance/<nombre>-<id>.<ext>      -> documentos de gobernanza
    token/<contractId>/<archivo>        -> imagenes y metadata de tokens
    token/<contractId>/uri.json         -> JSON de metadata publicado

Patron de diseno: Inyeccion de dependencias
-------------------------------------------
El constructor acepta un `client` opcional: en produccion se crea el
cliente real; en tests se pasa uno de moto o un MagicMock.
"""

import boto3
from botocore.exceptions import ClientError

from app.config import settings


class S3Service:
    """
    Servicio que encapsula las operaciones con el bucket.

    Atributos:
        client: Cliente de boto3 para S3.
        bucket (str): Nombre del bucket.
    """

    def __init__(self, client=None):
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.SPACES_ENDPOINT,
            region_name=settings.SPACES_REGION,
            aws_access_key_id=settings.SPACES_KEY,
            aws_secret_access_key=settings.SPACES_SECRET,
        )
        self.bucket = settings.SPACES_BUCKET

    def presign_put(self, key: str, content_type: str, expires_in: int = settings.PRESIGN_EXPIRES) -> str:
        """
        Genera una URL prefirmada para subir un objeto con PUT.

        El Content-Type y la ACL forman parte de la firma: el cliente DEBE
        enviar exactamente el mismo Content-Type al hacer el PUT, o el
        proveedor rechaza la peticion.

        Parametros:
            key (str): Key destino dentro del bucket.
            content_type (str): Tipo MIME con el que se guardara el objeto.
            expires_in (int): Segundos de validez de la URL.

        Retorna:
            str: URL firmada.
        """
        # generate_presigned_url no hace ninguna llamada de red: solo
        # calcula la firma localmente con las credenciales.
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": content_type,
                "ACL": "public-read",
            },
            ExpiresIn=expires_in,
        )

    def head(self, key: str) -> dict | None:
        """
        Obtiene los headers de un objeto (tamano, tipo) sin descargarlo.

        Retorna:
            dict | None: Respuesta de head_object, o None si el objeto no
            existe. Cualquier otro error se propaga.
        """
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            # HEAD no tiene body, asi que el "codigo" llega como el status
            # HTTP ("404") o como "NotFound" segun el proveedor.
            if e.response.get("Error", {}).get("Code") in ("404", "NotFound", "NoSuchKey"):
                return None
            raise

    def put(self, key: str, body: bytes | str, content_type: str, cache_control: str | None = None) -> None:
        """
        Sube un objeto publico directamente desde el servidor.

        Solo se usa para contenido pequeno generado por la API (el JSON de
        metadata de un token); los archivos de usuarios van por presign_put.
        """
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
            "ACL": "public-read",
        }
        if cache_control:
            params["CacheControl"] = cache_control
        self.client.put_object(**params)

    def set_acl(self, key: str, acl: str = "public-read") -> None:
        """Cambia la ACL de un objeto existente (ej: hacerlo publico)."""
        self.client.put_object_acl(Bucket=self.bucket, Key=key, ACL=acl)


# Instancia global del servicio (Singleton implicito). boto3 reutiliza
# conexiones HTTP, asi que no conviene crear un cliente por peticion.
s3_service = S3Service()
