"""Build an authenticated Gmail API client from a cached or fresh token."""

import logging
from datetime import timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, Union

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from .auth import token_from_console, token_from_local_server
from .config import Settings, config_from_json, get_settings
from .exceptions import CacheMissError, CachePersistError, ClientConstructionError
from .models import GMAIL_API_BASE_URL, AuthorizationConfig, SessionHandle, TokenRecord
from .token_store import load_token, resolve_cache_path, save_token

logger = logging.getLogger(__name__)

Authorizer = Callable[[AuthorizationConfig], TokenRecord]
ClientFactory = Callable[[Credentials], Any]


def credentials_from_token(record: TokenRecord, config: AuthorizationConfig) -> Credentials:
    """Wrap a token in google-auth credentials that refresh themselves when expired."""
    expiry = None
    if record.expiry is not None:
        # google-auth compares against naive UTC timestamps
        expiry = record.expiry.astimezone(timezone.utc).replace(tzinfo=None)
    return Credentials(
        token=record.access_token,
        refresh_token=record.refresh_token,
        token_uri=config.token_uri,
        client_id=config.client_id,
        client_secret=config.client_secret,
        scopes=config.scopes or None,
        expiry=expiry,
    )


def build_gmail_client(credentials: Credentials):
    """Construct the generated Gmail v1 client bound to ``credentials``."""
    return build("gmail", "v1", credentials=credentials, cache_discovery=False)


def new_service(
    config: AuthorizationConfig,
    token_path: Union[str, Path],
    *,
    authorize: Authorizer = token_from_console,
    client_factory: ClientFactory = build_gmail_client,
    base_url: str = GMAIL_API_BASE_URL,
) -> SessionHandle:
    """Return an authenticated Gmail session.

    The cached token at ``token_path`` is used when present. Otherwise
    ``authorize`` runs once and its token is cached; failing to cache it is
    logged and does not stop the current session.

    Raises:
        UserInputError: No authorization code could be read.
        TokenExchangeError: The authorization code was rejected.
        ClientConstructionError: The API client could not be built.
    """
    token_path = Path(token_path)
    try:
        record = load_token(token_path)
        logger.info(f"Using cached token from {token_path}")
    except CacheMissError as e:
        logger.info(f"{e}; starting interactive authorization")
        record = authorize(config)
        try:
            save_token(token_path, record)
        except CachePersistError as err:
            logger.warning(f"{err}; the next run will need to authorize again")

    credentials = credentials_from_token(record, config)
    try:
        service = client_factory(credentials)
    except Exception as e:
        raise ClientConstructionError(f"Unable to retrieve Gmail client: {e}") from e

    return SessionHandle(
        service=service,
        credentials=credentials,
        base_url=base_url,
        token_path=token_path,
    )


def authorizer_for(settings: Settings) -> Authorizer:
    """Pick the consent flow variant configured in ``settings``."""
    if settings.local_server_port is not None:
        return partial(token_from_local_server, port=settings.local_server_port)
    return partial(token_from_console, redirect_uri=settings.redirect_uri)


def session_from_settings(
    settings: Optional[Settings] = None,
    *,
    authorize: Optional[Authorizer] = None,
    client_factory: ClientFactory = build_gmail_client,
) -> SessionHandle:
    """Load the client secret and token cache location from settings and build a session."""
    settings = settings or get_settings()
    config = config_from_json(settings.client_secret_file, settings.gmail_scopes)
    token_path = resolve_cache_path(settings.credentials_dir, settings.token_filename)
    return new_service(
        config,
        token_path,
        authorize=authorize or authorizer_for(settings),
        client_factory=client_factory,
        base_url=settings.api_base_url,
    )


def persist_session_token(session: SessionHandle) -> bool:
    """Write the session's token back to its cache file if the transport refreshed it.

    Returns True when the cache file was rewritten.
    """
    current = session.current_token()
    try:
        cached = load_token(session.token_path)
    except CacheMissError:
        cached = None
    if cached is not None and cached.access_token == current.access_token:
        return False
    save_token(session.token_path, current)
    return True
