"""
Abstract Identity Provider Interface

The token provider only needs four things from an identity provider:
find an app that already exists, create one, get the auth handle for it,
and turn a signed-in user into an ID token. Firebase is the production
implementation; tests plug in doubles.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol

from expense_assets.config.settings import FirebaseSettings
from expense_assets.models.auth import AuthUser


class AuthHandle(Protocol):
    """Anything exposing the currently signed-in user (or None)."""

    @property
    def current_user(self) -> Optional[AuthUser]:
        ...


class IdentityProviderInterface(ABC):
    """Abstract interface for app initialization and ID token retrieval."""

    @abstractmethod
    def existing_app(self, config: FirebaseSettings) -> Optional[Any]:
        """Return the app named by config if it already exists in this process, else None."""
        pass

    @abstractmethod
    def initialize_app(self, config: FirebaseSettings) -> Any:
        """
        Create the app instance described by config.

        Not idempotent: callers must guard it (see AppContext).

        Raises:
            Exception: Whatever the SDK raises on bad credentials/options
        """
        pass

    @abstractmethod
    def get_auth(self, app: Any) -> AuthHandle:
        """Return the auth handle bound to app."""
        pass

    @abstractmethod
    async def get_id_token(self, user: AuthUser, force_refresh: bool = False) -> str:
        """
        Return an ID token for user.

        Args:
            user: The signed-in user
            force_refresh: Bypass the provider's cached token

        Raises:
            TokenRefreshError: If the token could not be refreshed
        """
        pass


class AuthError(Exception):
    """Base exception for auth operations."""
    pass


class InitializationError(AuthError):
    """The app instance could not be created."""
    pass


class SignInError(AuthError):
    """Sign-in was rejected by the identity provider."""
    pass


class TokenRefreshError(AuthError):
    """The refresh token could not be exchanged for a new ID token."""
    pass
