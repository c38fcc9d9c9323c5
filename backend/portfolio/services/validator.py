"""
Modulo de validacion de imagenes subidas.

Primera linea de defensa antes de tocar el almacenamiento. Verifica, en
orden de costo computacional (de mas barato a mas caro):

1. Tamano: maximo 10 MiB (comparar un entero)
2. Tipo declarado: el Content-Type que envia el cliente debe estar en la
   lista blanca (jpeg, png, webp, heic)
3. Tipo real: python-magic lee los "magic bytes" del archivo y el tipo
   detectado tambien debe ser una imagen permitida

Por que el paso 3 si ya validamos el Content-Type?
--------------------------------------------------
Porque el cliente puede declarar lo que quiera. Un atacante podria subir
un HTML con Content-Type: image/png; los magic bytes lo delatan.

La funcion es PURA: no sube nada ni escribe en la base de datos. Retorna
un ValidationResult y quien la llama decide que excepcion lanzar.
"""

from dataclasses import dataclass

import magic

from portfolio.config import settings


@dataclass
class ValidationResult:
    """
    Resultado de validar una imagen.

    Atributos:
        is_valid (bool): True si paso todas las validaciones.
        mime_type (str): Tipo detectado por magic bytes (vacio si no se llego
            a detectar, por ejemplo cuando falla el tamano).
        error (str): Motivo del rechazo; vacio si is_valid es True.
    """
    is_valid: bool
    mime_type: str = ""
    error: str = ""


def validate_image(data: bytes, content_type: str | None) -> ValidationResult:
    """
    Valida una imagen por tamano, tipo declarado y tipo real.

    Parametros:
        data (bytes): Contenido completo del archivo.
        content_type (str | None): Content-Type declarado por el cliente.

    Retorna:
        ValidationResult

    Ejemplo:
        >>> validate_image(b"x" * (11 * 1024 * 1024), "image/png")
        ValidationResult(is_valid=False, mime_type='',
                         error='File size exceeds maximum allowed size of 10MB')
    """
    # --- Validacion 1: tamano ---
    if len(data) > settings.MAX_FILE_SIZE:
        return ValidationResult(
            is_valid=False,
            error=f"File size exceeds maximum allowed size of {settings.MAX_FILE_SIZE // (1024 * 1024)}MB",
        )

    if not data:
        return ValidationResult(is_valid=False, error="No file provided")

    # --- Validacion 2: tipo declarado ---
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared not in settings.ALLOWED_MIME_TYPES:
        return ValidationResult(
            is_valid=False,
            error=f"Invalid file type. Allowed types: {', '.join(settings.ALLOWED_MIME_TYPES)}",
        )

    # --- Validacion 3: tipo real por magic bytes ---
    # Solo leemos los primeros 2 KB: las firmas estan al inicio del archivo.
    mime_type = magic.from_buffer(data[:2048], mime=True)
    if mime_type not in settings.SNIFFED_IMAGE_TYPES:
        return ValidationResult(
            is_valid=False,
            mime_type=mime_type,
            error=f"File content '{mime_type}' is not an allowed image",
        )

    return ValidationResult(is_valid=True, mime_type=mime_type)
