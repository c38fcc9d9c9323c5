"""
Filtro de IPs para rutas de administracion.

Aunque alguien obtenga credenciales de administrador, no podra usarlas
desde una IP que no este en la lista blanca.

Configuracion (variable de entorno ADMIN_WHITELIST_IPS):
    ADMIN_WHITELIST_IPS=127.0.0.1,192.168.1.100

Una lista vacia o "*" DESACTIVA el filtro (todas las IPs pasan). Es una
decision operativa: en desarrollo no queremos tener que configurarla.
"""

from dataclasses import dataclass

from fastapi import Request
from loguru import logger

from portfolio.config import settings
from portfolio.errors import Forbidden


def get_client_ip(request: Request) -> str:
    """
    Obtiene la IP del cliente considerando proxies.

    Orden de prioridad:
        1. Primer valor de X-Forwarded-For (la IP original detras de proxies)
        2. X-Real-IP (lo que envia Nginx)
        3. La direccion de la conexion TCP
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@dataclass(frozen=True)
class IpAllowlist:
    """Lista blanca ya parseada. `ips` vacio significa filtro desactivado."""

    ips: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, raw: str | None) -> "IpAllowlist":
        raw = (raw or "").strip()
        if not raw or raw == "*":
            return cls()
        return cls(frozenset(ip.strip() for ip in raw.split(",") if ip.strip()))

    @property
    def enabled(self) -> bool:
        return bool(self.ips)

    def is_allowed(self, ip: str) -> bool:
        # Comparacion exacta (sensible a mayusculas), sin rangos CIDR
        return not self.enabled or ip in self.ips


async def require_admin_ip(request: Request) -> str:
    """
    Dependencia de FastAPI que rechaza IPs fuera de la lista blanca.

    La lista se toma de `app.state.ip_allowlist` (creada al arrancar);
    si no existe se parsea la configuracion actual.
    """
    allowlist = getattr(request.app.state, "ip_allowlist", None)
    if allowlist is None:
        allowlist = IpAllowlist.from_config(settings.ADMIN_WHITELIST_IPS)

    client_ip = get_client_ip(request)
    if not allowlist.is_allowed(client_ip):
        logger.bind(client_ip=client_ip, path=request.url.path).warning(
            "Admin access denied from IP"
        )
        raise Forbidden("Access denied from this IP address")
    return client_ip
