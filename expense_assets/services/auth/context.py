"""
App Context

Holds the single app instance shared by the token provider and the storage
backend, and guarantees it is created at most once.

DESIGN DECISION: Instead of a module-level "initialization attempted" flag,
the state lives in an AppContext that callers construct once and inject.
Creation is a compare-and-set-once under a lock, so one context can be
shared between threads as well as coroutines.

State machine:
    UNINITIALIZED --first call--> SUCCEEDED | FAILED
Both outcomes are terminal. After a failure no further attempt is made for
the lifetime of the context.
"""

import threading
from typing import Any, Optional

import structlog

from expense_assets.audit.logger import AuditLogger
from expense_assets.config.settings import FirebaseSettings
from expense_assets.models.auth import InitializationState
from expense_assets.services.auth.interface import (
    IdentityProviderInterface,
    InitializationError,
)


logger = structlog.get_logger(__name__)


class AppContext:
    """Lazily created, at-most-once app handle."""

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        config: FirebaseSettings,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity = identity_provider
        self._config = config
        self._audit_logger = audit_logger
        self._lock = threading.Lock()
        self._app: Optional[Any] = None
        self._state = InitializationState.UNINITIALIZED

    @property
    def identity_provider(self) -> IdentityProviderInterface:
        return self._identity

    @property
    def config(self) -> FirebaseSettings:
        return self._config

    @property
    def state(self) -> InitializationState:
        return self._state

    @property
    def app(self) -> Optional[Any]:
        """The app if one is available, without triggering initialization."""
        return self._app

    def get_or_initialize(self) -> Optional[Any]:
        """
        Return the app, creating it on the first call.

        Returns:
            The app, or None if creation was already attempted and failed

        Raises:
            InitializationError: On the one call whose creation attempt fails
        """
        with self._lock:
            if self._app is not None:
                return self._app

            existing = self._identity.existing_app(self._config)
            if existing is not None:
                # Created elsewhere in the process; adopt it
                self._app = existing
                return self._app

            if self._state != InitializationState.UNINITIALIZED:
                logger.warning(
                    "app_initialization_already_attempted",
                    app_name=self._config.app_name,
                    state=self._state.value,
                )
                return None

            try:
                self._app = self._identity.initialize_app(self._config)
            except Exception as e:
                self._state = InitializationState.FAILED
                if self._audit_logger:
                    self._audit_logger.log_app_initialization_failed(self._config.app_name, e)
                raise InitializationError(
                    f"Failed to initialize app '{self._config.app_name}': {e}"
                ) from e

            self._state = InitializationState.SUCCEEDED
            if self._audit_logger:
                self._audit_logger.log_app_initialized(self._config.app_name)
            return self._app
