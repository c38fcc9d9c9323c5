"""
Punto de entrada principal de la aplicacion FastAPI.

Aqui se:
1. Configuran los logs (loguru).
2. Crean, en el lifespan, los recursos con estado: base de datos,
   almacenamiento S3, attempt tracker y lista blanca de IPs.
3. Registran los middlewares (CORS) y el rate limiter.
4. Registran los handlers de error y las rutas.

Arquitectura de la aplicacion:
------------------------------
    main.py (punto de entrada)
        |
        +-- routes/          (Controladores: reciben HTTP requests)
        |    +-- auth.py
        |    +-- images.py
        |
        +-- services/        (Logica de negocio)
        |    +-- images.py           ciclo de vida de imagenes (saga de borrado)
        |    +-- storage.py          adaptador S3
        |    +-- validator.py        tamano + tipo
        |    +-- image_transform.py  politica de dimensiones/calidad
        |    +-- attempt_tracker.py  bloqueo por intentos fallidos
        |    +-- ip_allowlist.py     filtro de IPs de administracion
        |    +-- auth.py             bcrypt + JWT
        |
        +-- repositories/    (Acceso a datos: tablas images y users)
        +-- models/          (Esquemas Pydantic)
        +-- database.py      (SQLite via aiosqlite)
        +-- config.py        (Configuracion centralizada)
        +-- limiter.py       (Rate limiting de ventana fija)
        +-- errors.py        (Taxonomia de errores)

El flujo de una peticion de login es:
    Cliente -> CORS -> filtro de IP -> rate limiter -> attempt tracker -> credenciales
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from portfolio.config import settings
from portfolio.database import Database
from portfolio.errors import PortfolioError, portfolio_error_handler
from portfolio.limiter import limiter
from portfolio.logging_config import setup_logging
from portfolio.routes.auth import router as auth_router
from portfolio.routes.images import router as images_router
from portfolio.services.attempt_tracker import LoginAttemptTracker
from portfolio.services.ip_allowlist import IpAllowlist
from portfolio.services.storage import S3Storage

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Crea los recursos al arrancar y los deja en app.state.

    Todo el estado en memoria (intentos de login, contadores de rate
    limit) es del proceso: se pierde al reiniciar.
    """
    app.state.db = Database(settings.DATABASE_PATH)
    await app.state.db.init()
    app.state.storage = S3Storage()
    app.state.attempt_tracker = LoginAttemptTracker()
    app.state.ip_allowlist = IpAllowlist.from_config(settings.ADMIN_WHITELIST_IPS)
    logger.bind(
        database=str(app.state.db.path),
        bucket=app.state.storage.bucket,
        ip_allowlist_enabled=app.state.ip_allowlist.enabled,
    ).info("Application started")
    yield
    logger.info("Application stopped")


app = FastAPI(title="Portfolio API", lifespan=lifespan)

# ---------- Rate limiter ----------

# SlowAPI busca el limiter en app.state. Cuando una IP excede el limite
# lanza RateLimitExceeded y este handler responde HTTP 429.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ---------- Errores del dominio ----------

app.add_exception_handler(PortfolioError, portfolio_error_handler)

# ---------- CORS ----------

# NUNCA usar allow_origins=["*"] en produccion junto con credenciales.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/api/health")
async def health_check():
    """Usado por load balancers y monitoreo: 200 OK si el servidor esta vivo."""
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(images_router)
