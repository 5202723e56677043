import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wallmag_auth.presentation.dependencies import get_client_ip, get_security_events
from wallmag_auth.settings import get_settings

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


def install_security_middleware(app: FastAPI) -> None:
    """Blocked-IP gate plus the standard response headers."""

    @app.middleware("http")
    async def security_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        ip = get_client_ip(request)

        # Resolved through dependency_overrides so tests can swap the store.
        # is_ip_blocked answers False when the store is unreachable.
        provider = app.dependency_overrides.get(get_security_events, get_security_events)
        if request.url.path != "/healthz" and await provider().is_ip_blocked(ip):
            logger.warning("blocked ip rejected", extra={"ip": ip, "path": request.url.path})
            response = JSONResponse(status_code=403, content={"message": "Access denied"})
        else:
            response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if get_settings().cookie_secure:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        response.headers["X-Request-ID"] = request_id
        return response
