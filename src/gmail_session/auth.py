"""Interactive OAuth2 consent for obtaining a Gmail user token."""

import logging
import sys
from typing import Optional, TextIO

from google_auth_oauthlib.flow import Flow, InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from requests.exceptions import RequestException

from .exceptions import TokenExchangeError, UserInputError
from .models import AuthorizationConfig, TokenRecord

logger = logging.getLogger(__name__)

OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

# ValueError also covers token responses that fail TokenRecord validation.
# oauthlib raises a bare Warning when the granted scopes differ from the requested ones.
EXCHANGE_ERRORS = (OAuth2Error, RequestException, ValueError, Warning)


def _redirect_uri(config: AuthorizationConfig, override: Optional[str]) -> str:
    if override:
        return override
    if config.redirect_uris:
        return config.redirect_uris[0]
    return OOB_REDIRECT_URI


def token_from_console(
    config: AuthorizationConfig,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    redirect_uri: Optional[str] = None,
) -> TokenRecord:
    """Ask the user to authorize in a browser and paste the resulting code.

    Blocks until one line is read from ``stdin``. There is no retry: a bad
    code surfaces as an error and the caller may start over.

    Args:
        config: OAuth client configuration.
        stdin: Stream the authorization code is read from (default: sys.stdin).
        stdout: Stream the consent URL and prompt are written to (default: sys.stdout).
        redirect_uri: Redirect URI registered for the client. Defaults to the
            first one in the client secret file, then the out-of-band URI.

    Raises:
        UserInputError: No code could be read.
        TokenExchangeError: The code could not be exchanged for a token.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    flow = Flow.from_client_config(
        config.to_client_config(),
        scopes=config.scopes,
        redirect_uri=_redirect_uri(config, redirect_uri),
    )
    auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")

    stdout.write(
        "Go to the following link in your browser then type the authorization code:\n"
    )
    stdout.write(f"{auth_url}\n")
    stdout.write("Enter code> ")
    stdout.flush()

    try:
        line = stdin.readline()
    except OSError as e:
        raise UserInputError(f"Unable to read authorization code: {e}") from e
    code = line.strip()
    if not code:
        raise UserInputError("Unable to read authorization code")

    logger.info("Exchanging authorization code for a token")
    try:
        flow.fetch_token(code=code)
        return TokenRecord.from_oauth_token(flow.oauth2session.token)
    except EXCHANGE_ERRORS as e:
        raise TokenExchangeError(f"Unable to retrieve token from web: {e}") from e


def token_from_local_server(
    config: AuthorizationConfig,
    *,
    port: int = 0,
    open_browser: bool = True,
) -> TokenRecord:
    """Run the consent flow with a loopback redirect instead of a pasted code."""
    flow = InstalledAppFlow.from_client_config(config.to_client_config(), scopes=config.scopes)

    logger.info(f"Waiting for the OAuth redirect on local port {port or '(any)'}")
    try:
        flow.run_local_server(
            port=port,
            open_browser=open_browser,
            prompt="consent",
            access_type="offline",
        )
        return TokenRecord.from_oauth_token(flow.oauth2session.token)
    except EXCHANGE_ERRORS + (OSError,) as e:
        raise TokenExchangeError(f"Unable to retrieve token from local server flow: {e}") from e
