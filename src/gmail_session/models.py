"""Pydantic models for OAuth configuration, cached tokens and sessions."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from google.oauth2.credentials import Credentials
from pydantic import BaseModel, ConfigDict, Field, field_validator

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GMAIL_API_BASE_URL = "https://gmail.googleapis.com/"


class AuthorizationConfig(BaseModel):
    """OAuth client settings parsed from a client secret file."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1, description="OAuth client ID")
    client_secret: str = Field(..., min_length=1, description="OAuth client secret")
    scopes: list[str] = Field(default_factory=list, description="Requested scopes")
    auth_uri: str = Field(default=GOOGLE_AUTH_URI)
    token_uri: str = Field(default=GOOGLE_TOKEN_URI)
    redirect_uris: list[str] = Field(default_factory=list)

    def to_client_config(self) -> dict:
        """Render the mapping expected by google_auth_oauthlib flows."""
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": list(self.redirect_uris),
            }
        }


class TokenRecord(BaseModel):
    """A user access token as stored in the cache file."""

    access_token: str = Field(..., min_length=1)
    token_type: str = Field(default="Bearer")
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None

    @field_validator("expiry")
    @classmethod
    def _expiry_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        # Naive timestamps are UTC, matching google-auth.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def expired(self) -> bool:
        """True once the expiry has passed. Tokens without an expiry never expire."""
        if self.expiry is None:
            return False
        return self.expiry <= datetime.now(timezone.utc)

    @classmethod
    def from_oauth_token(cls, token: dict) -> "TokenRecord":
        """Build a record from an oauthlib token response."""
        expires_at = token.get("expires_at")
        expiry = None
        if expires_at is not None:
            expiry = datetime.fromtimestamp(float(expires_at), tz=timezone.utc)
        return cls(
            access_token=token.get("access_token") or "",
            token_type=token.get("token_type") or "Bearer",
            refresh_token=token.get("refresh_token"),
            expiry=expiry,
        )

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> "TokenRecord":
        """Snapshot the token currently held by google-auth credentials."""
        return cls(
            access_token=credentials.token or "",
            refresh_token=credentials.refresh_token,
            expiry=credentials.expiry,
        )


class SessionHandle(BaseModel):
    """An authenticated Gmail API client owned by the caller."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    service: Any = Field(..., description="Generated Gmail API resource")
    credentials: Credentials
    base_url: str = Field(default=GMAIL_API_BASE_URL)
    token_path: Path

    def current_token(self) -> TokenRecord:
        """Token the transport is using now, including any refresh it performed."""
        return TokenRecord.from_credentials(self.credentials)
