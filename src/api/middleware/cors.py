"""
Permissive cross-origin middleware for the transcription proxy.

Any origin may call the proxy. ``OPTIONS`` preflights short-circuit with the
CORS headers and an empty body; every other response gets
``Access-Control-Allow-Origin: *`` added on the way out, whether or not the
request carried an ``Origin`` header.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Answer preflights and stamp the allow-origin header on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=PREFLIGHT_HEADERS)

        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response
