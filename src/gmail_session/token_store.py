"""On-disk cache for OAuth tokens."""

import logging
import os
from pathlib import Path
from typing import Union
from urllib.parse import quote_plus

from .exceptions import CacheMissError, CachePersistError, DirectoryCreateError
from .models import TokenRecord

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_NAME = ".credentials"
DIRECTORY_MODE = 0o700
FILE_MODE = 0o600


def default_directory() -> Path:
    """Return the ``.credentials`` folder in the current user's home directory."""
    try:
        home = Path.home()
    except (KeyError, RuntimeError) as e:
        raise DirectoryCreateError(f"Unable to determine home directory: {e}") from e
    return home / DEFAULT_DIRECTORY_NAME


def resolve_cache_path(directory: Union[str, Path, None], filename: str) -> Path:
    """Return the token cache path for ``filename``, creating its directory.

    The file name is URL-encoded so any account label can be used safely.
    Calling this repeatedly with the same arguments is harmless.
    """
    cache_dir = Path(directory) if directory is not None else default_directory()
    try:
        cache_dir.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(f"Unable to create token directory {cache_dir}: {e}") from e
    return cache_dir / quote_plus(filename)


def load_token(path: Union[str, Path]) -> TokenRecord:
    """Load a cached token.

    Raises:
        CacheMissError: The file is absent or does not hold a token.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise CacheMissError(f"No cached token at {path}: {e}") from e

    # pydantic ValidationError subclasses ValueError
    try:
        return TokenRecord.model_validate_json(raw)
    except ValueError as e:
        raise CacheMissError(f"Cached token at {path} is unreadable: {e}") from e


def save_token(path: Union[str, Path], record: TokenRecord) -> None:
    """Overwrite the cache file with ``record``, readable by the owner only."""
    path = Path(path)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # O_CREAT only applies the mode to new files
            os.fchmod(f.fileno(), FILE_MODE)
            f.write(record.model_dump_json(exclude_none=True))
            f.write("\n")
    except OSError as e:
        raise CachePersistError(f"Unable to cache oauth token at {path}: {e}") from e
    logger.info(f"Saved credentials to {path}")


def remove_token(path: Union[str, Path]) -> bool:
    """Delete the cached token. Returns False when nothing was cached."""
    path = Path(path)
    if not path.exists():
        return False
    path.unlink()
    logger.info(f"Deleted stored credentials at {path}")
    return True
