"""
Backend API Client

Minimal client for the companion backend: attaches the bearer token from
AuthTokenProvider and covers the guest signed-upload endpoints used by the
upload adapter.

On a 401 the request is retried exactly once with a force-refreshed token.
That is the only retry anywhere in this package.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import quote

import requests
import structlog

from expense_assets.config.settings import BackendApiSettings, get_settings
from expense_assets.models.upload import SignedUpload
from expense_assets.services.auth.token_provider import AuthTokenProvider


logger = structlog.get_logger(__name__)


class HttpError(Exception):
    """Non-2xx response from the backend."""

    def __init__(self, status: int, message: str, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body


def _parse_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        # Keep raw text for diagnostics
        logger.warning(
            "api_response_not_json",
            url=response.url,
            status=response.status_code,
        )
        return response.text


class BackendApiClient:
    """Authenticated and public calls to the backend API."""

    def __init__(
        self,
        token_provider: Optional[AuthTokenProvider] = None,
        settings: Optional[BackendApiSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._token_provider = token_provider
        self._settings = settings or get_settings().backend_api
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def _send_sync(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
        bearer_token: Optional[str] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if bearer_token:
            headers["Authorization"] = f"Bearer {bearer_token}"

        response = self._session.request(
            method,
            f"{self.base_url}{endpoint}",
            json=json,
            params=params,
            headers=headers,
            timeout=self._settings.timeout_seconds,
        )
        body = _parse_body(response)

        if not response.ok:
            message = (
                body["message"]
                if isinstance(body, dict) and "message" in body
                else f"HTTP {response.status_code}"
            )
            raise HttpError(response.status_code, message, body)

        return body

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """
        Call an authenticated endpoint.

        Raises:
            HttpError: On a non-2xx response (after the one 401 retry)
        """
        token = await self._token_provider.get_token() if self._token_provider else None
        try:
            return await asyncio.to_thread(
                self._send_sync, method, endpoint, json, params, token
            )
        except HttpError as err:
            if err.status != 401 or self._token_provider is None:
                logger.error("api_request_failed", endpoint=endpoint, status=err.status)
                raise

            refreshed = await self._token_provider.get_token(force_refresh=True)
            if not refreshed:
                raise

            try:
                return await asyncio.to_thread(
                    self._send_sync, method, endpoint, json, params, refreshed
                )
            except HttpError as retry_err:
                logger.error(
                    "api_request_unauthorized_after_refresh",
                    endpoint=endpoint,
                    status=retry_err.status,
                )
                raise

    async def public_request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Call an endpoint that needs no Firebase authentication."""
        try:
            return await asyncio.to_thread(self._send_sync, method, endpoint, json, params)
        except HttpError as err:
            logger.error("public_api_request_failed", endpoint=endpoint, status=err.status)
            raise

    # -------------------------------------------------------------------------
    # Guest uploads
    # -------------------------------------------------------------------------

    async def get_guest_signed_upload_url(
        self,
        guest_token: str,
        file_name: str,
        content_type: str = "image/jpeg",
    ) -> SignedUpload:
        body = await self.public_request(
            "POST",
            "/api/guest/signed-upload-url",
            json={"fileName": file_name, "contentType": content_type},
            params={"token": guest_token},
        )
        return SignedUpload.model_validate(body)

    def _put_signed_sync(self, signed_url: str, payload: bytes, content_type: str) -> None:
        response = self._session.put(
            signed_url,
            data=payload,
            headers={"Content-Type": content_type},
            timeout=self._settings.timeout_seconds,
        )
        if not response.ok:
            raise HttpError(
                response.status_code,
                f"Upload failed with status: {response.status_code}",
            )

    async def put_signed_upload(
        self,
        signed_url: str,
        payload: bytes,
        content_type: str = "image/jpeg",
    ) -> None:
        await asyncio.to_thread(self._put_signed_sync, signed_url, payload, content_type)

    def _guest_path(self, route: str, file_path: str, guest_token: str) -> str:
        return (
            f"{self.base_url}/api/guest/{route}/{quote(file_path, safe='')}"
            f"?token={quote(guest_token, safe='')}"
        )

    def guest_file_url(self, file_path: str, guest_token: str) -> str:
        """
        Backend URL that serves a guest receipt's bytes directly.

        Usable as an image source. The backend requires a guest token with
        REVIEW_ONLY access or higher.
        """
        return self._guest_path("file", file_path, guest_token)

    async def get_guest_receipt_signed_url(self, file_path: str, guest_token: str) -> str:
        """
        Ask the backend for a short-lived signed download URL.

        The endpoint answers with JSON ({"signedUrl": ...}), not a redirect,
        and requires REVIEW_ONLY access or higher.

        Raises:
            HttpError: On a non-2xx response (403 for submit-only tokens)
        """
        body = await self.public_request(
            "GET",
            f"/api/guest/receipt-url/{quote(file_path, safe='')}",
            params={"token": guest_token},
        )
        if not isinstance(body, dict) or "signedUrl" not in body:
            raise HttpError(200, "Response did not contain a signedUrl", body)
        return body["signedUrl"]
