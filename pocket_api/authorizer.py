import logging
import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .auth import PocketAuth
from .callback_server import CallbackListener
from .credential_store import Authorization, CredentialStore
from .errors import CredentialError, FatalAuthError, PersistenceError, PocketError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an acquisition.

    ``warning`` is set when the authorization was obtained but could not be
    cached; the caller can still use it for the current process.
    """

    authorization: Authorization
    warning: Optional[str] = None
    from_cache: bool = False


class Authorizer:
    """Returns the cached authorization, or runs the browser flow to get one.

    Flow on a cache miss: bind the callback listener, get a request token for
    its address, show the authorize URL, wait for the browser to come back,
    exchange the request token and cache the result.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        consumer_key: str,
        *,
        store: Optional[CredentialStore] = None,
        auth: Optional[PocketAuth] = None,
        listener_factory: Optional[Callable[..., CallbackListener]] = None,
        display: Callable[[str], None] = print,
    ):
        self.config = config or {}
        self.consumer_key = consumer_key
        self.store = store or CredentialStore(self.config)
        self.auth = auth or PocketAuth(self.config)
        self.listener_factory = listener_factory or CallbackListener
        self.display = display

    def acquire(self, *, force: bool = False) -> AuthResult:
        if not force:
            try:
                authorization = self.store.load_authorization()
            except CredentialError as e:
                logger.info("No usable cached authorization (%s); starting authorization flow", e)
            else:
                return AuthResult(authorization=authorization, from_cache=True)

        authorization = self._obtain_authorization()

        try:
            self.store.save_authorization(authorization)
        except PersistenceError as e:
            warning = f"{e}. You will need to authorize again next time."
            logger.warning(warning)
            return AuthResult(authorization=authorization, warning=warning)

        return AuthResult(authorization=authorization)

    def _obtain_authorization(self) -> Authorization:
        host = str(self.config.get("callback_host", "127.0.0.1"))
        port = int(self.config.get("callback_port", 0) or 0)
        timeout = float(self.config.get("callback_timeout", 0) or 0) or None

        try:
            with self.listener_factory(host, port) as listener:
                redirect_uri = listener.redirect_uri
                request_token = self.auth.obtain_request_token(self.consumer_key, redirect_uri)

                url = self.auth.get_authorize_url(request_token, redirect_uri)
                logger.info("Open this URL in your browser to authorize access to your Pocket account:")
                self.display(url)
                if self.config.get("open_browser", False):
                    self._open_browser(url)

                try:
                    if not listener.wait(timeout):
                        raise FatalAuthError(f"Timed out after {timeout:g}s waiting for the authorization callback")
                except KeyboardInterrupt as e:
                    raise FatalAuthError("Authorization cancelled") from e

            return self.auth.obtain_access_token(self.consumer_key, request_token)
        except FatalAuthError:
            raise
        except (PocketError, OSError) as e:
            raise FatalAuthError(f"Authorization failed: {e}") from e

    @staticmethod
    def _open_browser(url: str) -> None:
        try:
            if webbrowser.open(url):
                logger.info("Browser opened automatically")
        except webbrowser.Error as e:
            logger.debug("Could not open browser: %s", e)


def acquire_credential(
    config: Dict[str, Any],
    consumer_key: str,
    *,
    force: bool = False,
    store: Optional[CredentialStore] = None,
    auth: Optional[PocketAuth] = None,
) -> Authorization:
    """Return a usable authorization; raises FatalAuthError if none can be had."""

    result = Authorizer(config, consumer_key, store=store, auth=auth).acquire(force=force)
    return result.authorization
