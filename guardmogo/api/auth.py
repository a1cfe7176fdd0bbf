"""
Authentication API endpoints: sign-up, sign-in, federated sign-in and sessions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request

from guardmogo.api.dependencies import (
    api_error,
    auth_service,
    get_access_token,
    get_correlation_id,
    get_optional_user,
)
from guardmogo.config import settings
from guardmogo.models.api_models import (
    CurrentSessionResponse,
    OAuthCallbackRequest,
    OAuthUrlResponse,
    PasswordResetRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from guardmogo.models.internal_models import AuthSession, CurrentUser
from guardmogo.observability import trace_function
from guardmogo.services.auth_service import AuthService
from guardmogo.services.report_service import get_report_service

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["authentication"])


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at
    )


@router.post("/auth/signup", response_model=SessionResponse, status_code=201)
@trace_function("signup_endpoint")
async def sign_up(
    request: SignUpRequest,
    http_request: Request,
    auth: AuthService = Depends(auth_service)
) -> SessionResponse:
    """
    Create an account with email and password.

    Also creates the user's profile with role "user". The access token is
    empty when the provider requires email confirmation first.
    """
    logger.info("Sign-up request received", email=request.email, correlation_id=get_correlation_id(http_request))

    session = await auth.sign_up(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name
    )
    return _session_response(session)


@router.post("/auth/signin", response_model=SessionResponse)
@trace_function("signin_endpoint")
async def sign_in(
    request: SignInRequest,
    http_request: Request,
    auth: AuthService = Depends(auth_service)
) -> SessionResponse:
    logger.info("Sign-in request received", email=request.email, correlation_id=get_correlation_id(http_request))

    session = await auth.sign_in(request.email, request.password)
    return _session_response(session)


@router.get("/auth/google", response_model=OAuthUrlResponse)
async def google_sign_in(
    redirect_to: Optional[str] = Query(None),
    auth: AuthService = Depends(auth_service)
) -> OAuthUrlResponse:
    """URL the browser should visit to sign in with Google."""
    return OAuthUrlResponse(provider="google", url=auth.google_sign_in_url(redirect_to))


@router.post("/auth/google/callback", response_model=SessionResponse)
async def google_callback(
    request: OAuthCallbackRequest,
    http_request: Request,
    auth: AuthService = Depends(auth_service)
) -> SessionResponse:
    session = await auth.complete_oauth_sign_in(
        auth_code=request.auth_code,
        code_verifier=request.code_verifier,
        access_token=request.access_token
    )
    logger.info("Federated sign-in completed", user_id=session.user_id, correlation_id=get_correlation_id(http_request))
    return _session_response(session)


@router.post("/auth/signout", status_code=204)
async def sign_out(
    http_request: Request,
    token: Optional[str] = Depends(get_access_token),
    auth: AuthService = Depends(auth_service)
) -> None:
    if not token:
        raise api_error(401, "AuthenticationRequired", "Please sign in to continue.", get_correlation_id(http_request))
    await auth.sign_out(token)


@router.post("/auth/reset-password", status_code=202)
async def reset_password(
    request: PasswordResetRequest,
    auth: AuthService = Depends(auth_service)
) -> Dict[str, str]:
    await auth.reset_password(request.email)
    return {"message": "Password reset email sent! Check your inbox."}


@router.get("/auth/session", response_model=CurrentSessionResponse)
async def current_session(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentSessionResponse:
    """Who is signed in for this bearer token; role "guest" when nobody is."""
    return CurrentSessionResponse.from_user(user)


@router.get("/health", response_model=Dict[str, Any])
async def api_health_check() -> Dict[str, Any]:
    """
    Health check endpoint with component status.

    Returns:
        Dict with service health status and component checks
    """
    missing = settings.missing_backend_settings()
    if missing:
        return {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": f"Missing backend configuration: {', '.join(missing)}"
        }

    try:
        db_healthy = await get_report_service().db.health_check()
        auth_configured = not settings.missing_auth_settings()

        return {
            "status": "healthy" if db_healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {
                "database": {
                    "status": "healthy" if db_healthy else "unhealthy",
                    "backend": settings.store_backend
                },
                "identity_provider": {
                    "status": "configured" if auth_configured else "not_configured"
                }
            }
        }

    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": str(e)
        }
