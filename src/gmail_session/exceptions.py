"""Errors raised while building an authenticated Gmail session."""


class GmailSessionError(Exception):
    """Base class for every failure in the session setup flow."""

    pass


class ConfigReadError(GmailSessionError):
    """Raised when the client secret file cannot be read."""

    pass


class ConfigParseError(GmailSessionError):
    """Raised when the client secret file is not a usable credentials descriptor."""

    pass


class DirectoryCreateError(GmailSessionError):
    """Raised when the token cache directory cannot be determined or created."""

    pass


class CacheMissError(GmailSessionError):
    """Raised when the token cache file is absent or does not hold a token."""

    pass


class UserInputError(GmailSessionError):
    """Raised when no authorization code could be read from the console."""

    pass


class TokenExchangeError(GmailSessionError):
    """Raised when the authorization code could not be exchanged for a token."""

    pass


class CachePersistError(GmailSessionError):
    """Raised when a token could not be written to the cache file."""

    pass


class ClientConstructionError(GmailSessionError):
    """Raised when the Gmail API client rejects the authenticated transport."""

    pass
