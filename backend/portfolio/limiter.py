"""
Modulo de limitacion de tasa de peticiones (Rate Limiting).

El login es el objetivo favorito de los ataques de fuerza bruta, asi que
limitamos cuantas veces por minuto puede llamarlo una misma IP.

Usamos SlowAPI (wrapper de la libreria "limits" para FastAPI) con la
estrategia de VENTANA FIJA: el contador se reinicia en intervalos fijos
de reloj (cada 60 segundos), no de forma deslizante. Con "5/minute":
    - peticiones 1 a 5 dentro de la ventana -> pasan
    - peticion 6 dentro de la misma ventana -> HTTP 429 (Too Many Requests)
    - cuando la ventana expira -> el contador vuelve a 0

Los contadores viven en memoria del proceso (no sobreviven a un
reinicio). Con varios servidores se usaria Redis:
    Limiter(..., storage_uri="redis://localhost:6379")
"""

from slowapi import Limiter

from portfolio.services.ip_allowlist import get_client_ip

# key_func: la identidad del cliente es su IP, extraida con la misma
# prioridad de headers que usa el filtro de administracion.
limiter = Limiter(key_func=get_client_ip, strategy="fixed-window")
