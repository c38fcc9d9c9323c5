"""
Modulo de configuracion centralizada del backend del portafolio.

Todas las constantes que el backend necesita viven aqui: el bucket donde
se guardan las imagenes, los limites de subida, la politica de login y
la lista blanca de IPs de administracion.

Cada valor se lee de una variable de entorno con un default razonable
para desarrollo, asi la misma aplicacion corre en desarrollo, staging y
produccion sin tocar el codigo fuente.

Patron de diseno: **Singleton implicito**
La instancia `settings` se crea UNA sola vez al importar este modulo.
Los tests pueden modificar sus atributos (monkeypatch) para simular
otra configuracion.
"""

import os


def _env_bool(name: str, default: str = "false") -> bool:
    # "1", "true", "yes" y "on" se consideran verdaderos
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Clase que encapsula toda la configuracion de la aplicacion.

    Se usa una clase simple (como en el resto del proyecto) en vez de
    pydantic-settings para que los defaults sean visibles de un vistazo.
    """

    # ---------- Almacenamiento de objetos (S3) ----------

    S3_BUCKET: str = os.getenv("S3_BUCKET", "portfolio-images")
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")

    # URL publica base (por ejemplo un CDN delante del bucket).
    # Si esta vacia, se construye la URL virtual-hosted de S3.
    PUBLIC_URL_BASE: str = os.getenv("PUBLIC_URL_BASE", "")

    # "Carpeta" logica fija donde se guardan todas las imagenes.
    # En S3 las carpetas son solo prefijos del key.
    IMAGE_FOLDER: str = "portfolio"

    # ---------- Limites de imagenes ----------

    # 10 MiB = 10 * 1024 * 1024 bytes
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    # Lista blanca de tipos MIME declarados que aceptamos.
    # "image/jpg" no es un tipo oficial, pero algunos navegadores lo envian.
    ALLOWED_MIME_TYPES: tuple[str, ...] = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/heic",
    )

    # Tipos que python-magic puede reportar para un archivo permitido.
    # libmagic identifica HEIC como "image/heic" o "image/heif" segun version.
    SNIFFED_IMAGE_TYPES: tuple[str, ...] = (
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/heic",
        "image/heif",
    )

    # Politica de transformacion aplicada antes de subir:
    # dimensiones maximas (se respeta la proporcion) y calidad "auto".
    MAX_IMAGE_DIMENSION: int = int(os.getenv("MAX_IMAGE_DIMENSION", "2000"))
    IMAGE_QUALITY: int = int(os.getenv("IMAGE_QUALITY", "80"))

    # Paginacion del listado de imagenes
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100

    # ---------- Base de datos ----------

    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/portfolio.db")

    # Edad minima (segundos) para tratar un objeto sin registro como huerfano.
    # Una subida en curso ya tiene su objeto en S3 pero aun no su fila.
    RECONCILE_GRACE_SECONDS: int = int(os.getenv("RECONCILE_GRACE_SECONDS", str(60 * 60)))

    # ---------- Seguridad de login ----------

    # Lista de IPs separadas por coma. Vacia o "*" desactiva el filtro.
    ADMIN_WHITELIST_IPS: str = os.getenv("ADMIN_WHITELIST_IPS", "")

    # Ventana fija de slowapi: 5 peticiones por minuto por IP
    LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "5/minute")

    # Intentos fallidos antes del bloqueo, duracion del bloqueo y
    # tiempo de inactividad tras el cual se olvida el historial.
    LOGIN_MAX_ATTEMPTS: int = 10
    LOGIN_LOCKOUT_SECONDS: int = 5 * 60
    LOGIN_IDLE_RESET_SECONDS: int = 15 * 60

    # El retraso progresivo es solo una sugerencia al cliente (Retry-After).
    # Con LOGIN_ENFORCE_DELAY=true el servidor tambien espera ese tiempo.
    LOGIN_ENFORCE_DELAY: bool = _env_bool("LOGIN_ENFORCE_DELAY")

    # ---------- Tokens ----------

    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

    # ---------- HTTP / logs ----------

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
