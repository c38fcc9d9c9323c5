"""
Servicio de almacenamiento de objetos (Amazon S3).

Toda la comunicacion con S3 pasa por este modulo. El resto del proyecto
solo conoce dos operaciones:

    upload(bytes, filename, content_type) -> StoredObject(public_id, url)
    delete(public_id) -> "ok" | "not_found" | "error"

Estructura de keys en el bucket:
    portfolio/{uuid}.{ext}

El key completo es el `public_id`: el identificador opaco del objeto
remoto que guardamos en la tabla `images`.

Por que delete() retorna un resultado en vez de lanzar excepciones?
-------------------------------------------------------------------
El borrado de una imagen es un proceso en dos pasos (primero el objeto
remoto, despues el registro local). Quien coordina necesita distinguir
tres casos:
    - "ok": el objeto existia y se borro.
    - "not_found": el objeto ya no existia (por ejemplo, un intento previo
      lo borro y fallo despues). Para el coordinador tambien es exito.
    - "error": cualquier otra cosa; NO se debe tocar el registro local.

S3 no distingue los dos primeros casos en delete_object (siempre responde
204), asi que primero consultamos head_object.

Patron de diseno: Inyeccion de dependencias
-------------------------------------------
El constructor acepta un `client` opcional: en tests se pasa un cliente
de moto o un MagicMock en vez de llamar a AWS.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from portfolio.config import settings
from portfolio.services.image_transform import MIME_TO_EXT

DELETE_OK = "ok"
DELETE_NOT_FOUND = "not_found"
DELETE_ERROR = "error"

# Codigos con los que S3 reporta un objeto inexistente
_MISSING_CODES = ("404", "NoSuchKey", "NotFound")


@dataclass(frozen=True)
class StoredObject:
    public_id: str
    url: str


class StorageError(Exception):
    """Error del proveedor al subir. El coordinador lo traduce a UploadFailed."""


class S3Storage:
    """
    Adaptador de S3 para las imagenes del portafolio.

    Atributos:
        client: Cliente boto3 de S3.
        bucket (str): Bucket destino.
        folder (str): Prefijo fijo bajo el que se guardan las imagenes.
    """

    def __init__(self, client=None, bucket: str | None = None):
        self.client = client or boto3.client("s3", region_name=settings.AWS_REGION)
        self.bucket = bucket or settings.S3_BUCKET
        self.folder = settings.IMAGE_FOLDER

    def public_url(self, key: str) -> str:
        if settings.PUBLIC_URL_BASE:
            return f"{settings.PUBLIC_URL_BASE.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        """
        Sube los bytes bajo un key nuevo e impredecible.

        El nombre original del usuario NO forma parte del key (solo la
        extension), asi evitamos colisiones y caracteres problematicos.

        Raises:
            StorageError: si S3 rechaza la subida.
        """
        ext = MIME_TO_EXT.get(content_type, "")
        key = f"{self.folder}/{uuid.uuid4()}{ext}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                # El nombre original viaja como metadata (x-amz-meta-original-filename)
                Metadata={"original-filename": filename.encode("ascii", "ignore").decode()},
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
        return StoredObject(public_id=key, url=self.public_url(key))

    def exists(self, public_id: str) -> bool:
        """
        Consulta head_object sin descargar el objeto.

        Raises:
            StorageError: si S3 responde con un error distinto de "no existe".
        """
        try:
            self.client.head_object(Bucket=self.bucket, Key=public_id)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise StorageError(f"head_object failed with code {code}") from exc
        except BotoCoreError as exc:
            raise StorageError(str(exc)) from exc
        return True

    def delete(self, public_id: str) -> str:
        """Borra el objeto y retorna DELETE_OK, DELETE_NOT_FOUND o DELETE_ERROR."""
        try:
            if not self.exists(public_id):
                return DELETE_NOT_FOUND
        except StorageError as exc:
            logger.bind(public_id=public_id).error("Storage lookup failed before delete: {}", exc)
            return DELETE_ERROR

        try:
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as exc:
            logger.bind(public_id=public_id).error("Storage delete failed: {}", exc)
            return DELETE_ERROR
        return DELETE_OK

    def list_objects(self) -> dict[str, datetime]:
        """
        Mapa key -> LastModified (UTC) de todo lo que hay bajo la carpeta.

        list_objects_v2 retorna como maximo 1000 objetos por llamada; el
        paginator encadena las llamadas necesarias.
        """
        paginator = self.client.get_paginator("list_objects_v2")
        objects = {}
        for page in paginator.paginate(Bucket=self.bucket, Prefix=f"{self.folder}/"):
            for obj in page.get("Contents", []):
                objects[obj["Key"]] = obj["LastModified"]
        return objects

    def list_keys(self) -> list[str]:
        return sorted(self.list_objects())
