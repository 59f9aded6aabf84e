"""
mdsnips: Basic Auth Perimeter Middleware
==========================================

What:  Optional HTTP Basic authentication in front of the whole API.
How:   When configured with a username and password, every request except
       /health and the API docs must carry a matching Authorization: Basic
       header, otherwise it is answered with 401 and a
       WWW-Authenticate: Basic realm="Forbidden" challenge.

This is a perimeter gate for the deployment as a whole. It says nothing
about who owns a snippet; snippet edits are still authorized by update key.
"""

import base64
import binascii
import logging
import secrets
from typing import Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

REALM = "Forbidden"
EXCLUDED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def parse_basic_credentials(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode an Authorization header into (user, password), or None if malformed."""
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user, password


class BasicAuthMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, username: str, password: str):
        super().__init__(app)
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")

    def _is_authorized(self, credentials: Optional[Tuple[str, str]]) -> bool:
        if credentials is None:
            return False
        user, password = credentials
        user_ok = secrets.compare_digest(user.encode("utf-8"), self._username)
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self._password)
        return user_ok and pass_ok

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        credentials = parse_basic_credentials(request.headers.get("authorization"))
        if not self._is_authorized(credentials):
            logger.warning("Basic auth rejected for %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=401,
                content={
                    "error": "unauthorized",
                    "message": "Authentication required",
                },
                headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
            )

        return await call_next(request)
