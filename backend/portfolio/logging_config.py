"""
Configuracion de logs con loguru.

loguru reemplaza al modulo `logging` de la biblioteca estandar con una
API mas simple: un unico `logger` global al que se le agregan "sinks"
(destinos). Aqui configuramos un solo sink: stdout en formato JSON, que
es lo que recogen Docker, ECS o cualquier agregador de logs.

Los modulos solo hacen `from loguru import logger` y usan
`logger.bind(image_id=...)` para adjuntar contexto estructurado.
"""

import sys

from loguru import logger


def setup_logging(log_level: str = "INFO") -> None:
    """Deja un unico sink JSON en stdout con el nivel indicado."""
    # Quitamos el handler por defecto de loguru (stderr, formato de texto)
    logger.remove()
    logger.add(
        sys.stdout,
        level=log_level.upper(),
        format="{message}",
        # serialize=True: cada linea es un objeto JSON con nivel, hora,
        # modulo y los campos agregados con bind()
        serialize=True,
        backtrace=True,
        # diagnose muestra valores de variables en las trazas; puede filtrar secretos
        diagnose=False,
        colorize=False,
    )
