"""
Politica de transformacion aplicada a cada imagen antes de subirla.

La politica es FIJA (no la elige el cliente):
1. Limitar dimensiones: si la imagen supera MAX_IMAGE_DIMENSION en ancho
   o alto, se reduce manteniendo la proporcion (modo "limit": nunca se
   agranda ni se recorta).
2. Eliminar metadata (EXIF, GPS): las fotos de celular pueden incluir
   la ubicacion exacta donde se tomaron.
3. Calidad "auto": los formatos con perdida (JPEG, WebP) se re-codifican
   con IMAGE_QUALITY y tablas optimizadas; PNG se guarda con optimize.

Usamos Pillow y trabajamos todo en memoria (bytes <-> BytesIO).

Si Pillow no sabe decodificar el archivo (por ejemplo HEIC sin plugin),
la imagen se sube tal cual: la validacion ya confirmo que es una imagen
permitida, y la transformacion es una optimizacion, no un requisito.
"""

import io
from dataclasses import dataclass

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from portfolio.config import settings

# Mapea el formato que reporta Pillow -> tipo MIME y extension de salida
FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}

MIME_TO_EXT = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
    "image/heif": ".heif",
}

LOSSY_FORMATS = ("JPEG", "WEBP")


@dataclass
class TransformedImage:
    data: bytes
    content_type: str
    width: int | None = None
    height: int | None = None


def apply_upload_policy(data: bytes, content_type: str) -> TransformedImage:
    """
    Aplica la politica de transformacion y retorna los bytes a subir.

    Parametros:
        data (bytes): Imagen original (ya validada).
        content_type (str): Tipo MIME declarado/detectado de la imagen.

    Retorna:
        TransformedImage con los bytes finales y su tipo MIME.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        logger.bind(content_type=content_type).warning(
            "Image could not be decoded, uploading original bytes: {}", exc
        )
        return TransformedImage(data=data, content_type=content_type)

    fmt = img.format
    if fmt not in FORMAT_TO_MIME:
        return TransformedImage(data=data, content_type=content_type, width=img.width, height=img.height)

    # exif_transpose aplica la orientacion EXIF a los pixeles; sin esto
    # la foto saldria rotada al eliminar la metadata.
    img = ImageOps.exif_transpose(img)

    # thumbnail() reduce en el lugar manteniendo la proporcion y nunca agranda.
    limit = settings.MAX_IMAGE_DIMENSION
    if img.width > limit or img.height > limit:
        img.thumbnail((limit, limit), Image.LANCZOS)

    # JPEG no soporta transparencia ni paletas. Las paletas tampoco se
    # copian con paste(), asi que en los demas formatos pasamos a RGBA.
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    elif img.mode == "P":
        img = img.convert("RGBA")

    # Creamos una imagen "limpia" con los mismos pixeles: asi no arrastramos
    # EXIF, ICC ni ningun otro bloque de metadata.
    clean = Image.new(img.mode, img.size)
    clean.paste(img)

    buffer = io.BytesIO()
    if fmt in LOSSY_FORMATS:
        clean.save(buffer, format=fmt, quality=settings.IMAGE_QUALITY, optimize=True)
    else:
        clean.save(buffer, format=fmt, optimize=True)

    return TransformedImage(
        data=buffer.getvalue(),
        content_type=FORMAT_TO_MIME[fmt],
        width=clean.width,
        height=clean.height,
    )
