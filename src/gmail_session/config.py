"""Configuration management using Pydantic Settings."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigParseError, ConfigReadError
from .models import GMAIL_API_BASE_URL, GOOGLE_AUTH_URI, GOOGLE_TOKEN_URI, AuthorizationConfig

logger = logging.getLogger(__name__)

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"

# Sections used by the Google Cloud console download format.
CLIENT_SECTIONS = ("installed", "web")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OAuth client
    client_secret_file: Path = Field(
        default=Path("client_secret.json"), description="Path to the OAuth client secret file"
    )
    gmail_scopes: list[str] = Field(
        default=[GMAIL_READONLY_SCOPE],
        description="Gmail API scopes",
    )
    redirect_uri: Optional[str] = Field(
        default=None, description="Redirect URI override for the consent flow"
    )
    local_server_port: Optional[int] = Field(
        default=None,
        description="Receive the authorization code on a loopback server instead of the console",
    )

    # Token cache
    credentials_dir: Optional[Path] = Field(
        default=None, description="Token cache directory (defaults to ~/.credentials)"
    )
    token_filename: str = Field(default="gmail-token.json", description="Token cache file name")

    # API
    api_base_url: str = Field(default=GMAIL_API_BASE_URL, description="Gmail API base URL")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


def config_from_json(
    path: Union[str, Path], scope: Union[str, list[str], None] = None
) -> AuthorizationConfig:
    """Read a client secret file and return the OAuth configuration it describes.

    Both the Google Cloud console download (``{"installed": {...}}`` or
    ``{"web": {...}}``) and a flat ``{"client_id": ..., "client_secret": ...}``
    document are accepted.

    Args:
        path: Location of the client secret file.
        scope: Scope or scopes to request. When omitted, the ``scopes`` listed
            in the file are used.

    Raises:
        ConfigReadError: The file is missing or unreadable.
        ConfigParseError: The content is not a usable credentials descriptor.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigReadError(f"Unable to read client secret file {path}: {e}") from e

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ConfigParseError(f"Unable to parse client secret file {path} to config: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(f"Client secret file {path} does not contain a JSON object")

    section = data
    for key in CLIENT_SECTIONS:
        if key in data:
            section = data[key]
            break
    if not isinstance(section, dict):
        raise ConfigParseError(f"Client secret file {path} has a malformed client section")

    if scope is None:
        scopes = section.get("scopes", data.get("scopes", []))
    elif isinstance(scope, str):
        scopes = [scope]
    else:
        scopes = list(scope)

    try:
        config = AuthorizationConfig(
            client_id=section.get("client_id"),
            client_secret=section.get("client_secret"),
            scopes=scopes,
            auth_uri=section.get("auth_uri") or GOOGLE_AUTH_URI,
            token_uri=section.get("token_uri") or GOOGLE_TOKEN_URI,
            redirect_uris=section.get("redirect_uris") or [],
        )
    except ValidationError as e:
        raise ConfigParseError(f"Unable to parse client secret file {path} to config: {e}") from e

    logger.debug(f"Loaded OAuth client {config.client_id} from {path}")
    return config
