from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.configs.settings import settings


def get_client_ip(request: Request) -> str:
    """
    Obtiene la IP del cliente desde el request.
    Considera proxies y headers de forwarding.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


# Configurar limiter global
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri="memory://",  # Para varios workers usar Redis
    headers_enabled=False,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Devuelve la respuesta 429 con el mismo formato JSON que el resto de la API.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limited",
            "detail": f"Rate limit exceeded: {exc.detail}",
        },
    )
