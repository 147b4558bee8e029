import base64
import binascii
import hmac

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from envx_ui.auth_utils import verify_password

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data:",
    "connect-src 'self'",
    "font-src 'self'",
    "object-src 'none'",
    "frame-ancestors 'none'",
    "form-action 'self'",
])

SECURITY_HEADERS = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "DENY",
    "X-Permitted-Cross-Domain-Policies": "none",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds browser hardening headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Optional HTTP Basic Auth. Skips the health check and static files."""

    # Paths that never require auth
    PUBLIC_PATHS = {"/api/ping"}
    # Static files prefix
    STATIC_PREFIX = "/static/"

    def __init__(self, app, get_settings_fn):
        super().__init__(app)
        self._get_settings = get_settings_fn

    async def dispatch(self, request: Request, call_next) -> Response:
        settings = self._get_settings()

        if not settings.is_auth_configured:
            return await call_next(request)

        path = request.url.path

        if path in self.PUBLIC_PATHS or path.startswith(self.STATIC_PREFIX):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Basic "):
            try:
                decoded = base64.b64decode(auth_header[6:]).decode("utf-8")
                username, password = decoded.split(":", 1)
            except (binascii.Error, UnicodeDecodeError, ValueError):
                username = password = None
            if (
                username is not None
                and hmac.compare_digest(username.encode(), settings.auth_username.encode())
                and verify_password(password, settings.auth_password)
            ):
                return await call_next(request)

        return Response(
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="envx-ui"'},
            content="Unauthorized",
        )
