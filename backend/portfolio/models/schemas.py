"""
Esquemas (DTOs) de la API, definidos con Pydantic.

Son el contrato entre el frontend y el backend: FastAPI los usa para
validar las peticiones, serializar las respuestas y generar la
documentacion de Swagger (/docs).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ImageRecord(BaseModel):
    """
    Registro de una imagen subida.

    Atributos:
        id (str): UUID del registro local.
        public_id (str): Identificador del objeto remoto (key en S3).
            Es lo que usa el borrado para eliminar el archivo remoto.
        url (str): URL publica de la imagen.
        filename (str): Nombre original del archivo subido.
        alt_text, owner_id, project_id: metadata opcional.
    """
    id: str
    public_id: str
    url: str
    filename: str
    alt_text: str | None = None
    owner_id: str | None = None
    project_id: str | None = None
    created_at: datetime
    updated_at: datetime


class ImageList(BaseModel):
    """Pagina de resultados de GET /api/images."""
    data: list[ImageRecord]
    total: int
    page: int
    limit: int


class UserRecord(BaseModel):
    id: str
    name: str
    email: str
    role: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


class LoginRequest(BaseModel):
    # Validacion basica de forma; la verificacion real es contra la base
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    # Una contrasena corta se rechaza con 422 antes del servicio: no pasa
    # por el attempt tracker ni cuenta como intento fallido.
    password: str = Field(min_length=8)


class UserInfo(BaseModel):
    id: str
    email: str
    name: str
    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class ErrorResponse(BaseModel):
    """Formato uniforme de error: el frontend siempre lee `detail`."""
    detail: str
