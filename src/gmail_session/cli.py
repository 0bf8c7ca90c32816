"""CLI entry point for authorizing Gmail access and checking the cached token."""

import argparse
import logging
import sys
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from pydantic import ValidationError

from .config import get_settings
from .exceptions import GmailSessionError
from .models import SessionHandle
from .session import persist_session_token, session_from_settings
from .token_store import remove_token, resolve_cache_path

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line overrides for the settings."""
    parser = argparse.ArgumentParser(
        prog="gmail-session-auth",
        description="Authorize Gmail access and cache the OAuth token",
    )
    parser.add_argument("--client-secret", help="Path to the OAuth client secret file")
    parser.add_argument("--credentials-dir", help="Token cache directory (default: ~/.credentials)")
    parser.add_argument("--token-file", help="Token cache file name")
    parser.add_argument(
        "--scope",
        action="append",
        dest="scopes",
        help="Scope to request; repeat for several",
    )
    parser.add_argument(
        "--local-server-port",
        type=int,
        help="Receive the code on a loopback server instead of pasting it",
    )
    parser.add_argument("--revoke", action="store_true", help="Delete the cached token and exit")
    parser.add_argument("--list-labels", action="store_true", help="List the mailbox labels")
    return parser.parse_args(argv)


def list_labels(session: SessionHandle) -> list[str]:
    """Names of the authenticated user's labels."""
    response = session.service.users().labels().list(userId="me").execute()
    return [label["name"] for label in response.get("labels", [])]


def main(argv: Optional[list[str]] = None) -> int:
    """Authorize Gmail access, optionally list labels, and return the exit status."""
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error loading settings: {e}")
        return 1

    overrides = {
        "client_secret_file": args.client_secret,
        "credentials_dir": args.credentials_dir,
        "token_filename": args.token_file,
        "gmail_scopes": args.scopes,
        "local_server_port": args.local_server_port,
    }
    settings = settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    logging.basicConfig(level=settings.log_level)

    if args.revoke:
        try:
            token_path = resolve_cache_path(settings.credentials_dir, settings.token_filename)
        except GmailSessionError as e:
            print(f"Revoke failed: {e}")
            return 1
        if remove_token(token_path):
            print(f"Deleted cached token {token_path}")
        else:
            print(f"No cached token at {token_path}")
        return 0

    try:
        session = session_from_settings(settings)
    except GmailSessionError as e:
        print(f"Authentication failed: {e}")
        return 1

    print(f"Token cached at: {session.token_path}")

    if args.list_labels:
        try:
            labels = list_labels(session)
        except (HttpError, GoogleAuthError) as e:
            print(f"Unable to retrieve labels. {e}")
            return 1
        if labels:
            print("Labels:")
            for name in labels:
                print(f"- {name}")
        else:
            print("No labels found.")

        try:
            persist_session_token(session)
        except GmailSessionError as e:
            logger.warning(f"Refreshed token was not cached: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
