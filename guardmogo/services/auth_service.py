"""
Authentication service backed by Supabase Auth.

This module provides:
- Email/password sign-up and sign-in, creating the profile when missing
- Google sign-in through the provider's OAuth redirect
- Session resolution from bearer tokens, sign-out and password reset
- Mapping of provider error codes to user-readable messages
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from supabase import AuthError

from guardmogo.clients.base import ProfileRepository
from guardmogo.clients.supabase_client import SupabaseClient
from guardmogo.config import settings, ConfigurationError
from guardmogo.models.internal_models import AuthSession, CurrentUser, UserProfile
from guardmogo.utils.auth_messages import AuthErrorKind, classify_auth_error, message_for
from guardmogo.utils.validation import ValidationError, validate_email, validate_signup_fields

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

SessionListener = Callable[[str, Optional[str]], None]


class AuthServiceError(Exception):
    """Raised when the identity provider rejects an operation."""

    def __init__(self, kind: AuthErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(message_for(kind))

    @property
    def message(self) -> str:
        return message_for(self.kind)


def _translate(error: AuthError) -> AuthServiceError:
    code = getattr(error, "code", None)
    kind = classify_auth_error(code, getattr(error, "message", str(error)))
    return AuthServiceError(kind, detail=str(error))


def _to_session(response: Any) -> AuthSession:
    user = response.user
    session = response.session
    return AuthSession(
        user_id=str(user.id),
        email=user.email,
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_at=session.expires_at if session else None,
    )


class AuthService:
    """
    Thin layer over the identity provider.

    Each end-user flow runs on its own provider client so sessions never
    leak between requests; profiles live in the application store.
    """

    def __init__(self, supabase_client: SupabaseClient, profiles: ProfileRepository):
        self.supabase = supabase_client
        self.profiles = profiles
        self._listeners: List[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a callback for session changes.

        The callback receives the event name (SIGNED_IN or SIGNED_OUT) and the
        user ID when known. Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, event: str, user_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, user_id)
            except Exception as e:
                logger.warning(f"Session listener failed for {event}: {e}")

    async def _ensure_profile(self, profile: UserProfile) -> Optional[UserProfile]:
        """
        Create the profile if it is missing, leaving an existing one untouched.

        A store failure is logged and the flow carries on; the profile is
        retried on the next sign-in.
        """
        try:
            return await self.profiles.ensure_profile(profile)
        except Exception as e:
            logger.error(f"Error ensuring profile for {profile.id}: {e}")
            return None

    async def sign_up(self, email: str, password: str, first_name: str, last_name: str) -> AuthSession:
        """
        Create an account and its profile.

        Raises:
            ValidationError: If any field fails the sign-up rules
            AuthServiceError: DuplicateAccount, WeakPassword or InvalidEmail
        """
        errors = validate_signup_fields(email, password, first_name, last_name)
        if errors:
            raise ValidationError(errors)

        first_name = first_name.strip()
        last_name = last_name.strip()
        display_name = f"{first_name} {last_name}"

        try:
            response = self.supabase.new_auth_client().auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"display_name": display_name}}
            })
        except AuthError as e:
            logger.info(f"Sign-up rejected for {email}: {e}")
            raise _translate(e) from e

        if response.user is None:
            raise AuthServiceError(AuthErrorKind.UNKNOWN, detail="Provider returned no user")

        session = _to_session(response)

        await self._ensure_profile(UserProfile(
            id=session.user_id,
            email=email,
            display_name=display_name,
            first_name=first_name,
            last_name=last_name,
            role="user",
            created_at=datetime.now(timezone.utc),
            reports_count=0,
        ))

        logger.info(f"Created account {session.user_id}")
        self._publish(SIGNED_IN, session.user_id)
        return session

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthServiceError: NotFound, WrongPassword/InvalidCredentials or TooManyAttempts
        """
        if not validate_email(email):
            raise ValidationError({"email": "Please enter a valid email address"})
        if not (password or "").strip():
            raise ValidationError({"password": "Please enter your password"})

        try:
            response = self.supabase.new_auth_client().auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except AuthError as e:
            logger.info(f"Sign-in rejected for {email}: {e}")
            raise _translate(e) from e

        session = _to_session(response)
        metadata = response.user.user_metadata or {}
        await self._ensure_profile(UserProfile(
            id=session.user_id,
            email=session.email or email,
            display_name=metadata.get("display_name") or email.split("@")[0],
            role="user",
            created_at=datetime.now(timezone.utc),
        ))

        self._publish(SIGNED_IN, session.user_id)
        return session

    def google_sign_in_url(self, redirect_to: Optional[str] = None) -> str:
        """Authorization URL that starts Google sign-in at the provider."""
        try:
            response = self.supabase.new_auth_client().auth.sign_in_with_oauth({
                "provider": "google",
                "options": {"redirect_to": redirect_to or settings.site_url}
            })
        except AuthError as e:
            raise _translate(e) from e
        return response.url

    async def complete_oauth_sign_in(
        self,
        auth_code: Optional[str] = None,
        code_verifier: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> AuthSession:
        """
        Finish a federated sign-in and create the profile on first visit.

        Accepts either an authorization code (PKCE) or the access token the
        provider handed back to the browser.
        """
        auth_client = self.supabase.new_auth_client()
        try:
            if auth_code:
                params = {"auth_code": auth_code}
                if code_verifier:
                    params["code_verifier"] = code_verifier
                response = auth_client.auth.exchange_code_for_session(params)
                session = _to_session(response)
                metadata = response.user.user_metadata or {}
            elif access_token:
                user_response = auth_client.auth.get_user(access_token)
                if user_response is None or user_response.user is None:
                    raise AuthServiceError(AuthErrorKind.SESSION_EXPIRED)
                user = user_response.user
                session = AuthSession(user_id=str(user.id), email=user.email, access_token=access_token)
                metadata = user.user_metadata or {}
            else:
                raise AuthServiceError(AuthErrorKind.MISSING_FIELDS)
        except AuthError as e:
            raise _translate(e) from e

        display_name = metadata.get("full_name") or metadata.get("name") or (session.email or "").split("@")[0]
        profile = UserProfile(
            id=session.user_id,
            email=session.email or "",
            display_name=display_name,
            role="user",
            created_at=datetime.now(timezone.utc),
        )
        await self._ensure_profile(profile)

        self._publish(SIGNED_IN, session.user_id)
        return session

    async def current_session(self, access_token: Optional[str]) -> Optional[CurrentUser]:
        """
        Resolve a bearer token to the signed-in user.

        Returns None for a missing, invalid or expired token (a guest).
        """
        if not access_token:
            return None

        try:
            response = self.supabase.client.auth.get_user(access_token)
        except AuthError as e:
            logger.info(f"Rejected session token: {e}")
            return None

        if response is None or response.user is None:
            return None

        user = response.user
        user_id = str(user.id)

        try:
            profile = await self.profiles.get_profile(user_id)
        except Exception as e:
            logger.error(f"Error fetching profile for {user_id}: {e}")
            profile = None

        role = profile.role if profile else "user"
        return CurrentUser(id=user_id, email=user.email, role=role, profile=profile)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``."""
        user = await self.current_session(access_token)

        try:
            self.supabase.client.auth.admin.sign_out(access_token)
        except AuthError as e:
            logger.warning(f"Sign-out failed: {e}")
            raise _translate(e) from e

        self._publish(SIGNED_OUT, user.id if user else None)

    async def reset_password(self, email: str) -> None:
        """Send a password reset email that links back to the site."""
        if not validate_email(email):
            raise ValidationError({"email": "Please enter your email address first."})

        try:
            self.supabase.new_auth_client().auth.reset_password_for_email(
                email,
                {"redirect_to": f"{settings.site_url.rstrip('/')}/reset-password"}
            )
        except AuthError as e:
            raise _translate(e) from e

        logger.info(f"Password reset email requested for {email}")


# Global service instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """
    Get the global authentication service instance.

    Raises:
        ConfigurationError: If the identity provider is not configured
    """
    global _auth_service
    if _auth_service is None:
        missing = settings.missing_auth_settings()
        if missing:
            raise ConfigurationError(missing)

        from guardmogo.services.report_service import get_report_service
        _auth_service = AuthService(SupabaseClient(), get_report_service().db.profiles)
    return _auth_service
