"""
Ruta de login.

Es el endpoint mas atacado de cualquier backend, por eso acumula las
tres capas de politica antes de verificar credenciales:

1. require_admin_ip: solo IPs de la lista blanca (si esta configurada).
2. @limiter.limit: maximo LOGIN_RATE_LIMIT peticiones por IP y ventana.
3. LoginAttemptTracker: bloqueo por email tras 10 fallos.
"""

from fastapi import APIRouter, Depends
from starlette.requests import Request

from portfolio.config import settings
from portfolio.dependencies import get_auth_service
from portfolio.limiter import limiter
from portfolio.models.schemas import ErrorResponse, LoginRequest, LoginResponse
from portfolio.services.auth import AuthService
from portfolio.services.ip_allowlist import require_admin_ip

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(require_admin_ip)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
@limiter.limit(lambda: settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Parametros:
        request (Request): SlowAPI lo necesita en la firma para obtener la IP.
        payload (LoginRequest): email y contrasena.
    """
    return await service.login(payload.email, payload.password)
