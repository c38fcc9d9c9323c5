"""
Reconcilia el bucket de imagenes con la tabla `images`.

Por que existe este script?
---------------------------
Borrar una imagen son dos pasos: primero el objeto en S3, despues la fila
en SQLite. Si el segundo paso falla, la API registra un log CRITICAL y la
fila queda apuntando a un objeto inexistente. No hay reintento automatico:
un operador corre este script para ver (y opcionalmente corregir) esos
casos.

Reporta:
    - objetos huerfanos: keys bajo portfolio/ sin fila en `images`
    - filas colgantes: filas cuyo public_id ya no existe en el bucket

Uso:
    python scripts/reconcile_images.py          # solo reporta
    python scripts/reconcile_images.py --fix    # borra huerfanos y colgantes

Requisitos:
    - Paquete instalado (pip install -e .)
    - Credenciales AWS con s3:ListBucket, s3:GetObject y s3:DeleteObject
    - DATABASE_PATH apuntando a la misma base que usa la API

Codigo de salida: 0 si todo es consistente (o quedo corregido), 1 si no.
"""

import argparse
import asyncio
import sys

from loguru import logger

from portfolio.config import settings
from portfolio.database import Database
from portfolio.logging_config import setup_logging
from portfolio.repositories.images import ImageRepository
from portfolio.services.reconcile import reconcile
from portfolio.services.storage import S3Storage


async def main(fix: bool) -> int:
    db = Database(settings.DATABASE_PATH)
    await db.init()
    report = await reconcile(S3Storage(), ImageRepository(db), fix=fix)

    logger.bind(
        orphans=len(report.orphan_keys),
        dangling=len(report.dangling_ids),
        recent=len(report.recent_keys),
        fixed=report.fixed,
    ).info("Reconciliation finished")

    pending = len(report.orphan_keys) + len(report.dangling_ids) - report.fixed
    return 0 if pending == 0 else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--fix", action="store_true", help="delete orphan objects and dangling rows")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(main(args.fix)))
