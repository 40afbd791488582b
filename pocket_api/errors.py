from typing import Optional


class PocketError(Exception):
    """Base class for every error raised by the pocket_api package."""


class NetworkError(PocketError):
    """A request to Pocket could not be completed (DNS, connect, timeout...)."""


class RejectedError(PocketError):
    """Pocket answered with an HTTP error status.

    Pocket reports the reason in the ``X-Error-Code`` / ``X-Error`` response
    headers; both are kept when present.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class PendingError(PocketError):
    """The request token exists but the user has not approved it yet."""


class CredentialError(PocketError):
    """The cached authorization record could not be used."""


class CredentialNotFoundError(CredentialError):
    pass


class MalformedCredentialError(CredentialError):
    pass


class PersistenceError(PocketError):
    """The authorization record could not be written to disk."""


class ConsumerKeyError(PocketError):
    """No consumer key could be read from disk or from the operator."""


class FatalAuthError(PocketError):
    """Authorization could not be acquired. Always wraps the underlying cause."""
