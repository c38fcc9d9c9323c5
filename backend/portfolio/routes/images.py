"""
Rutas de imagenes: subir, listar, consultar y borrar.

    POST   /api/images        -> sube a S3 y guarda el registro   (auth + IP)
    GET    /api/images        -> lista paginada con filtros
    GET    /api/images/{id}   -> un registro
    DELETE /api/images/{id}   -> borra de S3 y luego de la base   (auth + IP)

Las rutas son delgadas: leen la peticion, llaman a ImageService y dejan
que el handler de PortfolioError traduzca los fallos a codigos HTTP.
"""

import os
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from portfolio.config import settings
from portfolio.dependencies import get_image_service
from portfolio.models.schemas import ErrorResponse, ImageList, ImageRecord
from portfolio.services.auth import require_user
from portfolio.services.images import ImageMetadata, ImageService, IncomingImage
from portfolio.services.ip_allowlist import require_admin_ip

router = APIRouter(prefix="/api/images", tags=["images"])


def _uuid_or_none(value: uuid.UUID | None) -> str | None:
    return str(value) if value else None


@router.post(
    "",
    response_model=ImageRecord,
    status_code=201,
    dependencies=[Depends(require_admin_ip), Depends(require_user)],
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def upload_image(
    file: UploadFile = File(...),
    alt_text: str | None = Form(None, max_length=500),
    owner_id: uuid.UUID | None = Form(None),
    project_id: uuid.UUID | None = Form(None),
    service: ImageService = Depends(get_image_service),
):
    # Leemos como maximo MAX_FILE_SIZE + 1 bytes: si llegan mas, el archivo
    # es demasiado grande y no hace falta cargarlo completo en memoria.
    data = await file.read(settings.MAX_FILE_SIZE + 1)

    # basename() elimina rutas del nombre ("../../etc/passwd" -> "passwd")
    filename = os.path.basename(file.filename or "unknown")

    return await service.upload(
        IncomingImage(data=data, filename=filename, content_type=file.content_type),
        ImageMetadata(
            alt_text=alt_text,
            owner_id=_uuid_or_none(owner_id),
            project_id=_uuid_or_none(project_id),
        ),
    )


@router.get("", response_model=ImageList)
async def list_images(
    owner_id: uuid.UUID | None = Query(None, alias="ownerId"),
    project_id: uuid.UUID | None = Query(None, alias="projectId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: ImageService = Depends(get_image_service),
):
    return await service.list(
        owner_id=_uuid_or_none(owner_id),
        project_id=_uuid_or_none(project_id),
        page=page,
        limit=limit,
    )


@router.get("/{image_id}", response_model=ImageRecord, responses={404: {"model": ErrorResponse}})
async def get_image(image_id: str, service: ImageService = Depends(get_image_service)):
    return await service.get(image_id)


@router.delete(
    "/{image_id}",
    status_code=204,
    dependencies=[Depends(require_admin_ip), Depends(require_user)],
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def delete_image(image_id: str, service: ImageService = Depends(get_image_service)):
    await service.delete(image_id)
    return Response(status_code=204)
