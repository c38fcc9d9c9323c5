"""Acceso a datos de la tabla `users`."""

import uuid
from datetime import datetime, timezone

from portfolio.database import Database
from portfolio.models.schemas import UserRecord

_COLUMN_LIST = "id, name, email, role, password_hash, created_at, updated_at"


class UserRepository:
    def __init__(self, db: Database):
        self._db = db

    async def create(self, *, name: str, email: str, password_hash: str, role: str = "EDITOR") -> UserRecord:
        now = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        user = UserRecord(
            id=str(uuid.uuid4()),
            name=name,
            email=email.strip().lower(),
            role=role,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO users ({_COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (user.id, user.name, user.email, user.role, password_hash, now, now),
            )
            await conn.commit()
        return user

    async def find_by_email(self, email: str) -> UserRecord | None:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMN_LIST} FROM users WHERE email = ?",
                (email.strip().lower(),),
            )
            row = await cur.fetchone()
        return UserRecord(**dict(row)) if row else None
