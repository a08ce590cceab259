"""
Component Wiring for Expense Assets

Builds the services in dependency order around one shared AppContext:

    FirebaseIdentityProvider ─┐
                              ├─> AppContext ─┬─> AuthTokenProvider ─> BackendApiClient ─┐
    FirebaseSettings ─────────┘               └─> FirebaseObjectStorage ─────────────────┴─> ReceiptUploader

DESIGN DECISION: The app handle is created lazily (first token request or
first upload), not here. Building components never touches the network.
"""

from typing import Optional

from expense_assets.audit import AuditLogger, configure_logging
from expense_assets.config import Settings, get_settings
from expense_assets.services.api import BackendApiClient
from expense_assets.services.auth import (
    AppContext,
    AuthTokenProvider,
    FirebaseIdentityProvider,
    IdentityProviderInterface,
)
from expense_assets.services.storage import FirebaseObjectStorage, ObjectStorageInterface
from expense_assets.services.upload import ReceiptUploader, select_image_source


def create_app_components(
    settings: Optional[Settings] = None,
    identity_provider: Optional[IdentityProviderInterface] = None,
    storage: Optional[ObjectStorageInterface] = None,
) -> tuple[ReceiptUploader, AuthTokenProvider, BackendApiClient]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        identity_provider: Override the Firebase identity provider (testing)
        storage: Override the Firebase storage backend (testing)

    Returns:
        (uploader, token_provider, api_client)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    firebase_settings = settings.firebase

    configure_logging(app_settings.log_level)
    audit_logger = AuditLogger()

    app_context = AppContext(
        identity_provider or FirebaseIdentityProvider(firebase_settings),
        firebase_settings,
        audit_logger=audit_logger,
    )
    token_provider = AuthTokenProvider(app_context, audit_logger=audit_logger)
    api_client = BackendApiClient(token_provider, settings=settings.backend_api)

    uploader = ReceiptUploader(
        storage=storage or FirebaseObjectStorage(
            app_context,
            bucket_name=firebase_settings.storage_bucket,
        ),
        image_source=select_image_source(app_settings.client_platform),
        api_client=api_client,
        audit_logger=audit_logger,
        settings=app_settings,
        bucket_name=firebase_settings.storage_bucket,
    )

    return uploader, token_provider, api_client
