"""
Base de datos relacional (SQLite via aiosqlite).

`Database` guarda la ruta del archivo, crea el esquema al arrancar y
entrega conexiones a traves de un context manager asincrono:

    async with db.connection() as conn:
        await conn.execute(...)

Los repositorios (portfolio.repositories) reciben esta instancia; asi
los tests pueden apuntar a una base temporal.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS images (
        id TEXT PRIMARY KEY,
        public_id TEXT NOT NULL,
        url TEXT NOT NULL,
        filename TEXT NOT NULL,
        alt_text TEXT,
        owner_id TEXT,
        project_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_images_owner_id ON images(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_images_project_id ON images(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_images_public_id ON images(public_id);",
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL DEFAULT 'EDITOR',
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
)


class Database:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def init(self) -> None:
        """Crea el directorio, el archivo y las tablas si no existen."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with self.connection() as conn:
            for statement in SCHEMA:
                await conn.execute(statement)
            await conn.commit()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await aiosqlite.connect(str(self.path))
        try:
            conn.row_factory = aiosqlite.Row
            yield conn
        finally:
            await conn.close()
