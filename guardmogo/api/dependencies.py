"""
Shared request dependencies and error responses for the API routers.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, Request

from guardmogo.config import settings, ConfigurationError
from guardmogo.models.internal_models import CurrentUser
from guardmogo.services.auth_service import AuthService, get_auth_service
from guardmogo.services.report_service import ReportService, get_report_service


def get_correlation_id(request: Request) -> str:
    return request.headers.get("X-Request-ID", "unknown")


def api_error(
    status_code: int,
    error_type: str,
    message: str,
    correlation_id: str,
    fields: Optional[Dict[str, str]] = None
) -> HTTPException:
    """Create an HTTPException carrying the standard error body."""
    detail = {
        "error": error_type,
        "message": message,
        "correlation_id": correlation_id,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
    if fields:
        detail["fields"] = fields
    return HTTPException(status_code=status_code, detail=detail)


def report_service() -> ReportService:
    """Report service, or a ConfigurationError when the store is not configured."""
    missing = settings.missing_backend_settings()
    if missing:
        raise ConfigurationError(missing)
    return get_report_service()


def auth_service() -> AuthService:
    return get_auth_service()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_optional_user(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(auth_service)
) -> Optional[CurrentUser]:
    """Signed-in user for the request, or None for a guest."""
    return await auth.current_session(_bearer_token(authorization))


async def get_current_user(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user)
) -> CurrentUser:
    """Signed-in user; answers 401 for guests."""
    if user is None:
        raise api_error(
            401,
            "AuthenticationRequired",
            "Please sign in to continue.",
            get_correlation_id(request)
        )
    return user


async def get_admin_user(request: Request, user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise api_error(403, "Forbidden", "Administrator access is required.", get_correlation_id(request))
    return user


def get_access_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    return _bearer_token(authorization)
