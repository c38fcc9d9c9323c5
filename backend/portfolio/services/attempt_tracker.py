"""
Registro de intentos fallidos de login (proteccion contra fuerza bruta).

Maquina de estados por identificador (email en minusculas):

    clean -> warn (1-2 fallos) -> soft-delay (3-4) -> hard-delay (5-9) -> locked (10+)

- Cada fallo solo avanza el estado; nunca retrocede.
- Un login exitoso borra el registro (vuelve a "clean").
- Si pasan 15 minutos desde el ultimo intento, el registro se descarta
  la proxima vez que se consulta (eviccion perezosa, sin timers).
- Al llegar a 10 fallos se fija un bloqueo de 5 minutos. El rechazo
  ocurre en el siguiente check(), no en record_failure().

El estado vive en un dict en memoria dentro de una instancia que la
aplicacion crea al arrancar (app.state.attempt_tracker). Cada
lectura-modificacion-escritura se hace bajo un lock, asi que la clase
tambien es segura si se usa desde hilos (endpoints sync de FastAPI).
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from portfolio.config import settings
from portfolio.errors import TooManyAttempts

# Umbrales del retraso progresivo sugerido (en milisegundos)
SOFT_DELAY_THRESHOLD = 3
HARD_DELAY_THRESHOLD = 5
SOFT_DELAY_MS = 5_000
HARD_DELAY_MS = 30_000


@dataclass
class AttemptRecord:
    count: int
    last_attempt: float
    locked_until: float | None = None


class LoginAttemptTracker:
    """
    Contador de intentos fallidos por identificador.

    Parametros:
        max_attempts: fallos que disparan el bloqueo.
        lockout_seconds: duracion del bloqueo.
        idle_reset_seconds: inactividad tras la cual se olvida el registro.
        clock: funcion que retorna "ahora" en segundos. Los tests pasan un
            reloj falso para no tener que esperar minutos reales.
    """

    def __init__(
        self,
        max_attempts: int = settings.LOGIN_MAX_ATTEMPTS,
        lockout_seconds: float = settings.LOGIN_LOCKOUT_SECONDS,
        idle_reset_seconds: float = settings.LOGIN_IDLE_RESET_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.idle_reset_seconds = idle_reset_seconds
        self._clock = clock
        self._records: dict[str, AttemptRecord] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(identifier: str) -> str:
        return identifier.strip().lower()

    def _current(self, key: str, now: float) -> AttemptRecord | None:
        """Retorna el registro vigente, descartandolo si esta inactivo. Llamar bajo lock."""
        record = self._records.get(key)
        if record is not None and now - record.last_attempt > self.idle_reset_seconds:
            del self._records[key]
            return None
        return record

    def check(self, identifier: str) -> None:
        """
        Verifica si el identificador puede intentar loguearse.

        Raises:
            TooManyAttempts: si hay un bloqueo vigente (con los segundos restantes).
        """
        key = self._key(identifier)
        with self._lock:
            now = self._clock()
            record = self._current(key, now)
            if record and record.locked_until and now < record.locked_until:
                remaining = math.ceil(record.locked_until - now)
                logger.bind(identifier=key, remaining_seconds=remaining).warning(
                    "Login rejected: account temporarily locked"
                )
                raise TooManyAttempts(remaining)

    def record_failure(self, identifier: str) -> AttemptRecord:
        key = self._key(identifier)
        with self._lock:
            now = self._clock()
            record = self._current(key, now)
            if record is None:
                record = AttemptRecord(count=0, last_attempt=now)
                self._records[key] = record

            record.count += 1
            record.last_attempt = now
            if record.count >= self.max_attempts:
                record.locked_until = now + self.lockout_seconds
                logger.bind(identifier=key, failures=record.count).warning(
                    "Account locked after repeated failed logins"
                )
            return record

    def record_success(self, identifier: str) -> None:
        with self._lock:
            self._records.pop(self._key(identifier), None)

    def delay_for(self, identifier: str) -> int:
        """
        Retraso sugerido (ms) segun la cantidad de fallos.

        Es solo un valor consultivo: quien llama decide si lo espera o si
        lo devuelve al cliente como pista de reintento.
        """
        key = self._key(identifier)
        with self._lock:
            record = self._current(key, self._clock())
        if record is None:
            return 0
        if record.count >= HARD_DELAY_THRESHOLD:
            return HARD_DELAY_MS
        if record.count >= SOFT_DELAY_THRESHOLD:
            return SOFT_DELAY_MS
        return 0

    def stage(self, identifier: str) -> str:
        """Nombre del estado actual: clean, warn, soft-delay, hard-delay o locked."""
        key = self._key(identifier)
        with self._lock:
            now = self._clock()
            record = self._current(key, now)
        if record is None:
            return "clean"
        if record.locked_until is not None and now < record.locked_until:
            return "locked"
        if record.count >= HARD_DELAY_THRESHOLD:
            return "hard-delay"
        if record.count >= SOFT_DELAY_THRESHOLD:
            return "soft-delay"
        return "warn"
