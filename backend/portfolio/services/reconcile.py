"""
Reconciliacion entre el bucket de S3 y la tabla `images`.

El borrado de una imagen toca dos sistemas (S3 y SQLite) sin transaccion
comun. Si el objeto remoto se borra pero el registro local no, queda una
"referencia colgante": una fila que apunta a un objeto que ya no existe.
El servicio lo reporta con un log CRITICAL; este modulo permite que un
operador encuentre y corrija esos casos despues.

Tambien detecta el caso inverso, "huerfanos": objetos en S3 sin fila
(por ejemplo, una subida cuyo INSERT fallo y cuya compensacion tampoco
pudo borrar el objeto).

Carreras con la API en funcionamiento
-------------------------------------
La comparacion parte de dos fotos tomadas en momentos distintos, y una
subida en curso ya tiene su objeto en S3 pero todavia no su fila. Por eso:
    - un objeto sin fila solo cuenta como huerfano si es mas viejo que
      RECONCILE_GRACE_SECONDS (la misma idea de edad minima que usaba la
      limpieza periodica del bucket);
    - antes de declarar colgante una fila se vuelve a consultar
      head_object: el objeto pudo aparecer despues del listado.

No se ejecuta automaticamente; lo invoca scripts/reconcile_images.py.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from loguru import logger
from starlette.concurrency import run_in_threadpool

from portfolio.config import settings
from portfolio.repositories.images import ImageRepository
from portfolio.services.storage import DELETE_ERROR, S3Storage, StorageError


@dataclass
class ReconcileReport:
    orphan_keys: list[str] = field(default_factory=list)
    dangling_ids: list[str] = field(default_factory=list)
    # Objetos sin fila pero todavia dentro del periodo de gracia
    recent_keys: list[str] = field(default_factory=list)
    fixed: int = 0

    @property
    def consistent(self) -> bool:
        return not self.orphan_keys and not self.dangling_ids


async def _find_dangling(storage: S3Storage, rows: dict[str, str], listed: set[str]) -> list[str]:
    dangling = []
    for public_id, image_id in rows.items():
        if public_id in listed:
            continue
        try:
            still_there = await run_in_threadpool(storage.exists, public_id)
        except StorageError as exc:
            # Sin respuesta clara de S3 no se toca la fila
            logger.bind(image_id=image_id, public_id=public_id).error(
                "Could not verify remote object: {}", exc
            )
            continue
        if not still_there:
            dangling.append(image_id)
    return sorted(dangling)


async def reconcile(
    storage: S3Storage,
    repository: ImageRepository,
    fix: bool = False,
    grace_seconds: int | None = None,
) -> ReconcileReport:
    """
    Compara los keys del bucket con los public_id de la base.

    Con fix=True borra las filas colgantes y los objetos huerfanos. Un
    objeto que S3 no logra borrar queda en el reporte y no cuenta como
    corregido.
    """
    if grace_seconds is None:
        grace_seconds = settings.RECONCILE_GRACE_SECONDS
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace_seconds)

    # Primero el bucket y despues la base: una fila siempre se escribe
    # despues de su objeto.
    objects = await run_in_threadpool(storage.list_objects)
    rows = await repository.all_public_ids()

    report = ReconcileReport()
    for key in sorted(objects.keys() - rows.keys()):
        if objects[key] > cutoff:
            report.recent_keys.append(key)
        else:
            report.orphan_keys.append(key)
    report.dangling_ids = await _find_dangling(storage, rows, set(objects))

    for key in report.orphan_keys:
        logger.bind(public_id=key).warning("Orphan object without image record")
    for image_id in report.dangling_ids:
        logger.bind(image_id=image_id).warning("Image record without remote object")

    if not fix:
        return report

    for image_id in report.dangling_ids:
        if await repository.delete(image_id):
            report.fixed += 1

    # Segunda lectura de la base justo antes de borrar objetos
    referenced = await repository.all_public_ids()
    for key in report.orphan_keys:
        if key in referenced:
            logger.bind(public_id=key).info("Orphan candidate gained a record, skipping")
            continue
        if await run_in_threadpool(storage.delete, key) != DELETE_ERROR:
            report.fixed += 1

    logger.bind(fixed=report.fixed).info("Reconciliation fixes applied")
    return report
