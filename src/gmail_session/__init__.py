"""Helpers for building an authenticated Gmail API client.

Typical usage::

    from gmail_session import GMAIL_READONLY_SCOPE, config_from_json, new_service, resolve_cache_path

    config = config_from_json("client_secret.json", GMAIL_READONLY_SCOPE)
    token_path = resolve_cache_path(None, "gmail-token.json")
    session = new_service(config, token_path)
    session.service.users().labels().list(userId="me").execute()
"""

from .auth import token_from_console, token_from_local_server
from .config import GMAIL_READONLY_SCOPE, Settings, config_from_json, get_settings
from .exceptions import (
    CacheMissError,
    CachePersistError,
    ClientConstructionError,
    ConfigParseError,
    ConfigReadError,
    DirectoryCreateError,
    GmailSessionError,
    TokenExchangeError,
    UserInputError,
)
from .models import AuthorizationConfig, SessionHandle, TokenRecord
from .session import (
    build_gmail_client,
    credentials_from_token,
    new_service,
    persist_session_token,
    session_from_settings,
)
from .token_store import default_directory, load_token, remove_token, resolve_cache_path, save_token

__all__ = [
    "AuthorizationConfig",
    "CacheMissError",
    "CachePersistError",
    "ClientConstructionError",
    "ConfigParseError",
    "ConfigReadError",
    "DirectoryCreateError",
    "GMAIL_READONLY_SCOPE",
    "GmailSessionError",
    "SessionHandle",
    "Settings",
    "TokenExchangeError",
    "TokenRecord",
    "UserInputError",
    "build_gmail_client",
    "config_from_json",
    "credentials_from_token",
    "default_directory",
    "get_settings",
    "load_token",
    "new_service",
    "persist_session_token",
    "remove_token",
    "resolve_cache_path",
    "save_token",
    "session_from_settings",
    "token_from_console",
    "token_from_local_server",
]
