"""
Taxonomia de errores del dominio.

Cada excepcion lleva el codigo HTTP con el que debe llegar al cliente.
Un unico handler registrado en main.py (`portfolio_error_handler`) las
convierte en respuestas JSON con el mismo formato que usa FastAPI para
sus propios errores: {"detail": "..."}.

Asi los servicios no dependen de FastAPI (no lanzan HTTPException) y
los tests pueden verificar el tipo exacto de fallo.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

# El limite de ventana fija lo aplica slowapi; su excepcion hace de
# RateLimited y la responde su propio handler con HTTP 429.
from slowapi.errors import RateLimitExceeded as RateLimited  # noqa: F401


class PortfolioError(Exception):
    """Clase base. `detail` es el mensaje que ve el cliente."""

    status_code: int = 500

    def __init__(self, detail: str, headers: dict[str, str] | None = None):
        super().__init__(detail)
        self.detail = detail
        self.headers = headers


class InvalidFile(PortfolioError):
    """Archivo rechazado antes de subirlo (tamano o tipo)."""

    status_code = 400


class UploadFailed(PortfolioError):
    """El proveedor de almacenamiento fallo. El mensaje es generico a proposito."""

    status_code = 502


class NotFound(PortfolioError):
    status_code = 404


class DeleteFailed(PortfolioError):
    status_code = 500


class InvalidCredentials(PortfolioError):
    status_code = 401


class TooManyAttempts(PortfolioError):
    """La cuenta esta bloqueada temporalmente por intentos fallidos."""

    status_code = 429

    def __init__(self, remaining_seconds: int):
        super().__init__(
            f"Too many failed attempts. Account locked for {remaining_seconds} seconds.",
            headers={"Retry-After": str(remaining_seconds)},
        )
        self.remaining_seconds = remaining_seconds


class Forbidden(PortfolioError):
    status_code = 403


async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )
