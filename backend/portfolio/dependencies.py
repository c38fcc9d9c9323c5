"""
Dependencias de FastAPI que entregan los servicios a las rutas.

Los servicios y sus estados en memoria (attempt tracker, base de datos,
almacenamiento) se crean UNA vez en el lifespan de main.py y se guardan
en `app.state`. Asi su ciclo de vida es explicito: cada instancia de la
aplicacion (y cada test) tiene los suyos.
"""

from fastapi import Request

from portfolio.repositories.images import ImageRepository
from portfolio.repositories.users import UserRepository
from portfolio.services.auth import AuthService
from portfolio.services.images import ImageService


def get_image_service(request: Request) -> ImageService:
    state = request.app.state
    return ImageService(ImageRepository(state.db), state.storage)


def get_auth_service(request: Request) -> AuthService:
    state = request.app.state
    return AuthService(UserRepository(state.db), state.attempt_tracker)
