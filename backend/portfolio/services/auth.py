"""
Autenticacion: verificacion de credenciales y emision de tokens.

Flujo de POST /api/auth/login (las capas de politica corren primero):

    filtro de IP -> rate limit (slowapi) -> attempt tracker.check()
        -> retraso opcional -> bcrypt -> record_failure / record_success -> JWT

Las contrasenas se guardan con bcrypt (hash lento con salt incluido).
Los tokens son JWT HS256 firmados con JWT_SECRET.

El mensaje de error es SIEMPRE "Invalid credentials", exista o no el
email, para no revelar que cuentas estan registradas.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from starlette.concurrency import run_in_threadpool

from portfolio.config import settings
from portfolio.errors import InvalidCredentials
from portfolio.models.schemas import LoginResponse, UserInfo
from portfolio.repositories.users import UserRepository
from portfolio.services.attempt_tracker import LoginAttemptTracker

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Hash corrupto o con formato desconocido
        return False


def create_access_token(user_id: str, email: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise InvalidCredentials("Invalid or expired token") from exc


class AuthService:
    def __init__(self, users: UserRepository, tracker: LoginAttemptTracker):
        self.users = users
        self.tracker = tracker

    async def login(self, email: str, password: str) -> LoginResponse:
        email = email.strip().lower()

        # Lanza TooManyAttempts si la cuenta esta bloqueada
        self.tracker.check(email)

        delay_ms = self.tracker.delay_for(email)
        if delay_ms and settings.LOGIN_ENFORCE_DELAY:
            await asyncio.sleep(delay_ms / 1000)

        user = await self.users.find_by_email(email)
        valid = user is not None and await run_in_threadpool(
            verify_password, password, user.password_hash
        )
        if not valid:
            record = self.tracker.record_failure(email)
            logger.bind(identifier=email, failures=record.count).info("Failed login attempt")
            # Pista de reintento para el cliente segun el nuevo conteo
            next_delay = self.tracker.delay_for(email)
            headers = {"Retry-After": str(next_delay // 1000)} if next_delay else None
            raise InvalidCredentials("Invalid credentials", headers=headers)

        self.tracker.record_success(email)
        logger.bind(user_id=user.id).info("User logged in")
        return LoginResponse(
            access_token=create_access_token(user.id, user.email, user.role),
            user=UserInfo(id=user.id, email=user.email, name=user.name, role=user.role),
        )


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Dependencia de FastAPI: exige un Bearer token valido y retorna sus claims."""
    if credentials is None:
        raise InvalidCredentials("Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    claims = decode_access_token(credentials.credentials)
    request.state.user = claims
    return claims
