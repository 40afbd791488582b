"""Pocket API integration (OAuth request token flow + v3 item endpoints).

The authorization flow is driven by ``Authorizer``: it reuses the cached
record from ``CredentialStore`` or runs the browser flow through
``PocketAuth`` and ``CallbackListener``.
"""

from .auth import PocketAuth, RequestToken
from .authorizer import AuthResult, Authorizer, acquire_credential
from .callback_server import CallbackListener
from .client import PocketClient, PocketItem
from .credential_store import Authorization, CredentialStore

__version__ = "0.1.0"

__all__ = [
    "AuthResult",
    "Authorization",
    "Authorizer",
    "CallbackListener",
    "CredentialStore",
    "PocketAuth",
    "PocketClient",
    "PocketItem",
    "RequestToken",
    "acquire_credential",
]
