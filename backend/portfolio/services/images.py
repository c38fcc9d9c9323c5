"""
Ciclo de vida de las imagenes: validar, subir, listar y borrar.

Este servicio coordina DOS sistemas independientes sin una transaccion
compartida:
    - el almacenamiento remoto (S3), que guarda los bytes
    - la tabla `images`, que guarda el puntero (public_id + url)

Invariante: ningun registro local puede apuntar a un objeto remoto que
ya fue borrado, y ningun objeto remoto debe quedar referenciado solo por
un registro borrado.

Estados de una imagen:

    nonexistent -> uploading -> persisted -> deleting -> deleted
                      |
                      +-> (fallo remoto) nonexistent, sin registro

Subida: el registro se escribe SOLO despues de que el almacenamiento
confirmo la subida. Si S3 falla, no queda ningun registro huerfano. Si
falla el INSERT, el objeto recien subido se borra (compensacion) y el
cliente recibe el mismo UploadFailed.

Borrado (saga de dos pasos):
    1. Borrar el objeto remoto. "ok" y "not_found" cuentan como exito
       (idempotente frente a intentos previos a medias). Cualquier otro
       resultado aborta SIN tocar el registro local.
    2. Borrar el registro local.
Una vez confirmado el paso 1 no hay vuelta atras: el registro nunca
vuelve a "persisted". Si el paso 2 falla queda una referencia colgante;
se registra con nivel CRITICAL para resolverla a mano (ver
scripts/reconcile_images.py).

Los borrados concurrentes de la misma imagen no se serializan aqui: el
segundo ve "not_found" en S3 y luego ninguna fila que borrar, y termina
en NotFound sin efectos.
"""

from dataclasses import dataclass

from loguru import logger
from starlette.concurrency import run_in_threadpool

from portfolio.config import settings
from portfolio.errors import DeleteFailed, InvalidFile, NotFound, UploadFailed
from portfolio.models.schemas import ImageList, ImageRecord
from portfolio.repositories.images import ImageRepository
from portfolio.services.image_transform import apply_upload_policy
from portfolio.services.storage import DELETE_ERROR, DELETE_NOT_FOUND, DELETE_OK, StorageError
from portfolio.services.validator import validate_image


@dataclass
class IncomingImage:
    """Archivo recibido: bytes crudos + lo que declaro el cliente."""
    data: bytes
    filename: str
    content_type: str | None


@dataclass
class ImageMetadata:
    alt_text: str | None = None
    owner_id: str | None = None
    project_id: str | None = None


class ImageService:
    """
    Parametros:
        repository: acceso a la tabla `images`.
        storage: adaptador del almacenamiento remoto (S3Storage o un doble
            de pruebas con los mismos metodos upload/delete).
    """

    def __init__(self, repository: ImageRepository, storage):
        self.repository = repository
        self.storage = storage

    def validate(self, file: IncomingImage) -> str:
        """Valida sin efectos secundarios. Retorna el tipo detectado o lanza InvalidFile."""
        result = validate_image(file.data, file.content_type)
        if not result.is_valid:
            raise InvalidFile(result.error)
        return result.mime_type

    async def upload(self, file: IncomingImage, metadata: ImageMetadata | None = None) -> ImageRecord:
        metadata = metadata or ImageMetadata()
        # Tipo detectado por magic bytes: es el que viaja a S3 si Pillow no
        # puede reescribir la imagen, nunca el Content-Type crudo del cliente.
        mime_type = self.validate(file)

        # Pillow y boto3 son bloqueantes: los corremos en el threadpool
        # para no frenar el event loop mientras se procesa la imagen.
        transformed = await run_in_threadpool(apply_upload_policy, file.data, mime_type)
        try:
            stored = await run_in_threadpool(
                self.storage.upload, transformed.data, file.filename, transformed.content_type
            )
        except StorageError as exc:
            # El detalle del proveedor va al log, nunca al cliente
            logger.bind(filename=file.filename).error("Image upload to storage failed: {}", exc)
            raise UploadFailed("Failed to upload image") from exc

        try:
            record = await self.repository.create(
                public_id=stored.public_id,
                url=stored.url,
                filename=file.filename,
                alt_text=metadata.alt_text,
                owner_id=metadata.owner_id,
                project_id=metadata.project_id,
            )
        except Exception as exc:
            await self._discard_uploaded(stored.public_id, exc)
            raise UploadFailed("Failed to upload image") from exc
        logger.bind(image_id=record.id, public_id=record.public_id, size=len(transformed.data)).info(
            "Image uploaded"
        )
        return record

    async def _discard_uploaded(self, public_id: str, cause: Exception) -> None:
        """
        Compensacion de la subida: el objeto ya esta en S3 pero su fila no
        se pudo escribir. Se borra para no dejar un huerfano; si tampoco se
        puede, queda para scripts/reconcile_images.py.
        """
        log = logger.bind(public_id=public_id)
        log.error("Image record creation failed after upload: {}", cause)
        result = await run_in_threadpool(self.storage.delete, public_id)
        if result == DELETE_ERROR:
            log.critical("Uploaded object could not be removed after record failure")
        else:
            log.warning("Uploaded object removed after record failure")

    async def list(
        self,
        *,
        owner_id: str | None = None,
        project_id: str | None = None,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
    ) -> ImageList:
        page = max(page, 1)
        limit = min(max(limit, 1), settings.MAX_PAGE_SIZE)
        items, total = await self.repository.find(
            owner_id=owner_id,
            project_id=project_id,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return ImageList(data=items, total=total, page=page, limit=limit)

    async def get(self, image_id: str) -> ImageRecord:
        record = await self.repository.get(image_id)
        if record is None:
            raise NotFound(f"Image with ID {image_id} not found")
        return record

    async def delete(self, image_id: str) -> None:
        record = await self.get(image_id)
        log = logger.bind(image_id=image_id, public_id=record.public_id)

        # Estado intermedio observable de la saga: si el proceso muere
        # entre los dos pasos, este evento permite encontrar la imagen.
        log.info("Image delete pending")

        # --- Paso 1: objeto remoto ---
        result = await run_in_threadpool(self.storage.delete, record.public_id)
        if result not in (DELETE_OK, DELETE_NOT_FOUND):
            log.bind(storage_result=result).error("Storage deletion failed, keeping database record")
            raise DeleteFailed("Failed to delete image")
        if result == DELETE_NOT_FOUND:
            log.warning("Remote object already gone, removing database record")

        # --- Paso 2: registro local ---
        # A partir de aqui el objeto remoto ya no existe: nunca se restaura el registro.
        try:
            deleted = await self.repository.delete(image_id)
        except Exception as exc:
            log.critical(
                "CRITICAL: image deleted from storage but database deletion failed: {}", exc
            )
            raise DeleteFailed("Failed to delete image") from exc

        if not deleted:
            # Otro borrado concurrente gano la carrera
            raise NotFound(f"Image with ID {image_id} not found")
        log.info("Image deleted")
