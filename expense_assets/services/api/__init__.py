"""Backend API client package."""

from expense_assets.services.api.client import BackendApiClient, HttpError

__all__ = ["BackendApiClient", "HttpError"]
