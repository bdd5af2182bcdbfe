# federation/authz_errors.py
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

LOGIN_PAGE_URL = "/login"


def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    # browsers usually send text/html
    return "text/html" in accept


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unauthenticated -> send browsers to the login page
    if exc.status_code == 401 and _wants_html(request):
        return RedirectResponse(url=LOGIN_PAGE_URL, status_code=303)

    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)
