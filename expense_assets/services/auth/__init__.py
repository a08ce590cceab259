"""
Auth Services Package

Lazy, at-most-once app initialization and ID token retrieval.
"""

from expense_assets.services.auth.interface import (
    AuthError,
    AuthHandle,
    IdentityProviderInterface,
    InitializationError,
    SignInError,
    TokenRefreshError,
)
from expense_assets.services.auth.context import AppContext
from expense_assets.services.auth.firebase_identity import (
    FirebaseAuth,
    FirebaseAuthRestClient,
    FirebaseIdentityProvider,
)
from expense_assets.services.auth.token_provider import AuthTokenProvider

__all__ = [
    # Interface
    "AuthHandle",
    "IdentityProviderInterface",
    # Exceptions
    "AuthError",
    "InitializationError",
    "SignInError",
    "TokenRefreshError",
    # Core
    "AppContext",
    "AuthTokenProvider",
    # Firebase implementation
    "FirebaseAuth",
    "FirebaseAuthRestClient",
    "FirebaseIdentityProvider",
]
