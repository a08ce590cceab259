"""
Auth Session Models

An AuthUser is the signed-in session held by the identity provider.
Its tokens are refreshed in place, so unlike the upload models it is
mutable.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


# Firebase SDKs treat a token as stale this long before it really expires
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)


class InitializationState(str, Enum):
    """
    One-shot app initialization state.

    UNINITIALIZED -> SUCCEEDED | FAILED. Both outcomes are terminal.
    """
    UNINITIALIZED = "uninitialized"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AuthUser(BaseModel):
    """A signed-in Firebase user and its current token pair."""

    uid: str = Field(..., min_length=1, description="Firebase user ID (localId)")
    email: Optional[str] = None
    id_token: str = Field(..., description="Current Firebase ID token")
    refresh_token: str = Field(..., description="Long-lived refresh token")
    expires_at: datetime = Field(..., description="When id_token expires (UTC)")

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - TOKEN_REFRESH_MARGIN

    @staticmethod
    def expiry_from(expires_in: Union[str, int], now: Optional[datetime] = None) -> datetime:
        """Convert an 'expiresIn' seconds value from the REST API to a timestamp."""
        now = now or datetime.now(timezone.utc)
        return now + timedelta(seconds=int(expires_in))
