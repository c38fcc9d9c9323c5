"""
Crea un usuario para iniciar sesion en POST /api/auth/login.

La API no expone registro publico: los usuarios del panel se dan de alta
desde la linea de comandos. La contrasena se pide por consola (getpass)
para que no quede en el historial del shell.

Uso:
    python scripts/create_user.py --name "Ana" --email ana@example.com --role ADMIN
"""

import argparse
import asyncio
import getpass
import sys

import aiosqlite
from loguru import logger

from portfolio.config import settings
from portfolio.database import Database
from portfolio.logging_config import setup_logging
from portfolio.repositories.users import UserRepository
from portfolio.services.auth import hash_password


async def main(name: str, email: str, role: str, password: str) -> int:
    db = Database(settings.DATABASE_PATH)
    await db.init()
    try:
        user = await UserRepository(db).create(
            name=name, email=email, password_hash=hash_password(password), role=role
        )
    except aiosqlite.IntegrityError:
        logger.bind(email=email).error("A user with this email already exists")
        return 1
    logger.bind(user_id=user.id, email=user.email, role=user.role).info("User created")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a login user")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--role", default="EDITOR", choices=["ADMIN", "EDITOR"])
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    password = getpass.getpass("Password: ")
    if len(password) < 8:
        logger.error("Password must be at least 8 characters")
        sys.exit(1)
    sys.exit(asyncio.run(main(args.name, args.email, args.role, password)))
