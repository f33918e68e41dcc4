# marketplace/authz_errors.py
from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

LOGIN_PAGE = "/login"
SUBSCRIPTION_PAGE = "/business/subscription"

# Access-guard codes a browser can fix by paying or upgrading
_SUBSCRIPTION_CODES = frozenset({"SUBSCRIPTION_REQUIRED", "PLAN_UPGRADE_REQUIRED", "EMPLOYEE_LIMIT_REACHED"})


def _browser_target(request: Request, exc: StarletteHTTPException) -> Optional[str]:
    """Page to send an HTML client to instead of a JSON error, if any."""
    if "text/html" not in (request.headers.get("accept") or "").lower():
        return None
    if exc.status_code == 401:
        return LOGIN_PAGE
    detail = exc.detail if isinstance(exc.detail, dict) else {}
    if exc.status_code == 403 and detail.get("code") in _SUBSCRIPTION_CODES:
        return SUBSCRIPTION_PAGE
    return None


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    target = _browser_target(request, exc)
    if target:
        return RedirectResponse(url=target, status_code=303)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )
