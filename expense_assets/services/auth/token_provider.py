"""
Auth Token Provider

Hands out the bearer token for backend API calls.

Contract:
- No app (initialization failed, now or on an earlier call) -> None
- No signed-in user -> None, whatever force_refresh says
- Otherwise the identity provider's ID token, refreshed when forced
- Any provider error -> None (logged and audited, never raised)

KNOWN WEAKNESS: Because errors collapse to None, callers cannot tell
"signed out" from "identity provider is down". The audit log records a
TOKEN_UNAVAILABLE event for the latter so outages remain visible.
"""

import asyncio
from typing import Optional

import structlog

from expense_assets.audit.logger import AuditLogger
from expense_assets.services.auth.context import AppContext


logger = structlog.get_logger(__name__)


class AuthTokenProvider:
    """Fetches the current user's ID token through an injected AppContext."""

    def __init__(
        self,
        app_context: AppContext,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._context = app_context
        self._identity = app_context.identity_provider
        self._audit_logger = audit_logger

    async def get_token(self, force_refresh: bool = False) -> Optional[str]:
        """
        Get the ID token for the signed-in user.

        The token is not cached here; every call asks the identity provider.

        Args:
            force_refresh: Bypass the identity provider's cached token

        Returns:
            The ID token, or None when no token can be produced
        """
        try:
            app = self._context.app
            if app is None:
                # First use may read a credentials file and build the SDK app
                app = await asyncio.to_thread(self._context.get_or_initialize)
            if app is None:
                return None

            user = self._identity.get_auth(app).current_user
            if user is None:
                return None

            return await self._identity.get_id_token(user, force_refresh)

        except Exception as e:
            logger.error(
                "id_token_unavailable",
                error=str(e),
                error_type=type(e).__name__,
                force_refresh=force_refresh,
            )
            if self._audit_logger:
                self._audit_logger.log_token_unavailable(e, force_refresh)
            return None
