"""
Firebase Identity Provider

Two halves:
1. The app instance comes from firebase-admin (initialize_app / get_app),
   with a service account certificate or Application Default Credentials.
2. The signed-in session is client-side Firebase Auth, spoken over the
   public REST endpoints (Identity Toolkit for sign-in, Secure Token for
   refresh), because firebase-admin has no notion of a "current user".

Token caching mirrors the Firebase client SDKs: the ID token is reused
until it is within five minutes of expiry, unless a refresh is forced.
"""

import asyncio
from typing import Any, Optional

import firebase_admin
import requests
import structlog
from firebase_admin import auth as admin_auth
from firebase_admin import credentials

from expense_assets.config.settings import FirebaseSettings, get_settings
from expense_assets.models.auth import AuthUser
from expense_assets.services.auth.interface import (
    AuthError,
    IdentityProviderInterface,
    SignInError,
    TokenRefreshError,
)


logger = structlog.get_logger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"


def _error_code(response: requests.Response) -> str:
    """Pull the error code (e.g. INVALID_PASSWORD) out of a REST error body."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"


class FirebaseAuthRestClient:
    """Thin wrapper over the Firebase Auth REST endpoints."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()

    def _post(self, url: str, error_cls: type[AuthError], **kwargs) -> dict:
        try:
            response = self._session.post(
                url,
                params={"key": self._api_key},
                timeout=self._timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise error_cls(f"Firebase Auth request failed: {e}") from e

        if not response.ok:
            raise error_cls(_error_code(response))
        return response.json()

    def sign_in_with_password(self, email: str, password: str) -> dict:
        return self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
            SignInError,
            json={"email": email, "password": password, "returnSecureToken": True},
        )

    def sign_in_with_custom_token(self, token: str) -> dict:
        return self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithCustomToken",
            SignInError,
            json={"token": token, "returnSecureToken": True},
        )

    def refresh(self, refresh_token: str) -> dict:
        return self._post(
            SECURE_TOKEN_URL,
            TokenRefreshError,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )


class FirebaseAuth:
    """
    Auth handle for one app: owns the current user.

    Sign-in methods are async because they hit the network; the blocking
    requests calls run in a worker thread.
    """

    def __init__(self, app: Any, rest_client: FirebaseAuthRestClient):
        self._app = app
        self._rest = rest_client
        self._current_user: Optional[AuthUser] = None

    @property
    def app(self) -> Any:
        return self._app

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current_user

    async def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        payload = await asyncio.to_thread(self._rest.sign_in_with_password, email, password)
        self._current_user = AuthUser(
            uid=payload["localId"],
            email=payload.get("email", email),
            id_token=payload["idToken"],
            refresh_token=payload["refreshToken"],
            expires_at=AuthUser.expiry_from(payload["expiresIn"]),
        )
        logger.info("user_signed_in", uid=self._current_user.uid, method="password")
        return self._current_user

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        """
        Sign in with a custom token minted by the backend.

        The REST response carries no user ID, so it is read from the
        verified ID token claims.
        """
        payload = await asyncio.to_thread(self._rest.sign_in_with_custom_token, token)
        try:
            claims = await asyncio.to_thread(
                admin_auth.verify_id_token, payload["idToken"], self._app
            )
        except (ValueError, admin_auth.InvalidIdTokenError, admin_auth.CertificateFetchError) as e:
            raise SignInError(f"Issued ID token failed verification: {e}") from e

        self._current_user = AuthUser(
            uid=claims["uid"],
            email=claims.get("email"),
            id_token=payload["idToken"],
            refresh_token=payload["refreshToken"],
            expires_at=AuthUser.expiry_from(payload["expiresIn"]),
        )
        logger.info("user_signed_in", uid=self._current_user.uid, method="custom_token")
        return self._current_user

    def sign_out(self) -> None:
        if self._current_user is not None:
            logger.info("user_signed_out", uid=self._current_user.uid)
        self._current_user = None


class FirebaseIdentityProvider(IdentityProviderInterface):
    """Firebase implementation of the identity provider interface."""

    def __init__(
        self,
        settings: Optional[FirebaseSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings
        self._session = session
        self._rest: Optional[FirebaseAuthRestClient] = None
        self._auth_handles: dict[str, FirebaseAuth] = {}

    def _get_settings(self) -> FirebaseSettings:
        if self._settings is None:
            self._settings = get_settings().firebase
        return self._settings

    def _rest_client(self) -> FirebaseAuthRestClient:
        if self._rest is None:
            settings = self._get_settings()
            self._rest = FirebaseAuthRestClient(
                api_key=settings.api_key,
                timeout=settings.auth_timeout_seconds,
                session=self._session,
            )
        return self._rest

    def existing_app(self, config: FirebaseSettings) -> Optional[firebase_admin.App]:
        try:
            return firebase_admin.get_app(config.app_name)
        except ValueError:
            return None

    def initialize_app(self, config: FirebaseSettings) -> firebase_admin.App:
        if config.service_account_path:
            credential = credentials.Certificate(config.service_account_path)
        else:
            credential = credentials.ApplicationDefault()

        app = firebase_admin.initialize_app(
            credential,
            options=config.to_app_options(),
            name=config.app_name,
        )
        # The REST client must use the same project as the app
        if self._settings is not config:
            self._settings = config
            self._rest = None
        logger.info("firebase_app_initialized", app_name=app.name, project_id=config.project_id)
        return app

    def get_auth(self, app: firebase_admin.App) -> FirebaseAuth:
        handle = self._auth_handles.get(app.name)
        if handle is None:
            handle = FirebaseAuth(app, self._rest_client())
            self._auth_handles[app.name] = handle
        return handle

    async def get_id_token(self, user: AuthUser, force_refresh: bool = False) -> str:
        if not force_refresh and not user.needs_refresh():
            return user.id_token

        payload = await asyncio.to_thread(self._rest_client().refresh, user.refresh_token)
        user.id_token = payload["id_token"]
        user.refresh_token = payload["refresh_token"]
        user.expires_at = AuthUser.expiry_from(payload["expires_in"])
        logger.debug("id_token_refreshed", uid=user.uid, forced=force_refresh)
        return user.id_token
