"""Acceso a datos de la tabla `images`."""

import uuid
from datetime import datetime, timezone

from portfolio.database import Database
from portfolio.models.schemas import ImageRecord

_COLUMNS = (
    "id",
    "public_id",
    "url",
    "filename",
    "alt_text",
    "owner_id",
    "project_id",
    "created_at",
    "updated_at",
)
_COLUMN_LIST = ", ".join(_COLUMNS)


def _utcnow() -> str:
    # ISO-8601 con microsegundos: ordena correctamente como texto
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class ImageRepository:
    def __init__(self, db: Database):
        self._db = db

    async def create(
        self,
        *,
        public_id: str,
        url: str,
        filename: str,
        alt_text: str | None = None,
        owner_id: str | None = None,
        project_id: str | None = None,
    ) -> ImageRecord:
        now = _utcnow()
        record = ImageRecord(
            id=str(uuid.uuid4()),
            public_id=public_id,
            url=url,
            filename=filename,
            alt_text=alt_text,
            owner_id=owner_id,
            project_id=project_id,
            created_at=now,
            updated_at=now,
        )
        async with self._db.connection() as conn:
            await conn.execute(
                f"INSERT INTO images ({_COLUMN_LIST}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    public_id,
                    url,
                    filename,
                    alt_text,
                    owner_id,
                    project_id,
                    now,
                    now,
                ),
            )
            await conn.commit()
        return record

    async def get(self, image_id: str) -> ImageRecord | None:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {_COLUMN_LIST} FROM images WHERE id = ?", (image_id,))
            row = await cur.fetchone()
        return ImageRecord(**dict(row)) if row else None

    async def find(
        self,
        *,
        owner_id: str | None = None,
        project_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ImageRecord], int]:
        """Retorna (pagina de registros, total sin paginar), del mas nuevo al mas viejo."""
        clauses, params = [], []
        if owner_id:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        if project_id:
            clauses.append("project_id = ?")
            params.append(project_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT COUNT(*) FROM images {where}", tuple(params))
            (total,) = await cur.fetchone()
            cur = await conn.execute(
                f"SELECT {_COLUMN_LIST} FROM images {where} "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cur.fetchall()
        return [ImageRecord(**dict(r)) for r in rows], total

    async def delete(self, image_id: str) -> bool:
        """Borra el registro. Retorna True si existia."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM images WHERE id = ?", (image_id,))
            await conn.commit()
            return cur.rowcount > 0

    async def all_public_ids(self) -> dict[str, str]:
        """Mapa public_id -> id de todos los registros (para reconciliar con S3)."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT id, public_id FROM images")
            rows = await cur.fetchall()
        return {row["public_id"]: row["id"] for row in rows}
