import json
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .credential_store import Authorization
from .errors import NetworkError, PendingError, RejectedError

logger = logging.getLogger(__name__)

POCKET_BASE_URL = "https://getpocket.com"

# X-Error-Code values Pocket uses for a request token that exists but has not
# been approved by the user yet.
PENDING_ERROR_CODES = frozenset({"185"})


@dataclass(frozen=True)
class RequestToken:
    """Short-lived code identifying one pending authorization attempt."""

    code: str
    redirect_uri: str


def parse_response_body(resp: httpx.Response) -> Dict[str, str]:
    """Decode a Pocket OAuth response (form-encoded by default, JSON on request)."""

    content_type = resp.headers.get("Content-Type", "")
    text = resp.text or ""

    if "json" in content_type:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise RejectedError(f"Pocket response was not JSON: {text}", status_code=resp.status_code) from e
        if not isinstance(payload, dict):
            raise RejectedError(f"Pocket response was not an object: {payload}", status_code=resp.status_code)
        return {str(k): "" if v is None else str(v) for k, v in payload.items()}

    return {k: v[0] for k, v in urllib.parse.parse_qs(text.strip(), keep_blank_values=True).items()}


class PocketAuth:
    """Pocket OAuth helper: request token, authorize URL and access token exchange."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        base_url: str = POCKET_BASE_URL,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config or {}
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    def obtain_request_token(self, consumer_key: str, redirect_uri: str) -> RequestToken:
        payload = self._post_form(
            f"{self.base_url}/v3/oauth/request",
            {
                "consumer_key": consumer_key,
                "redirect_uri": redirect_uri,
            },
        )

        code = payload.get("code", "")
        if not code:
            raise RejectedError(f"Pocket did not return a request token: {payload}")

        logger.debug("Obtained request token")
        return RequestToken(code=code, redirect_uri=redirect_uri)

    def get_authorize_url(self, request_token: RequestToken, redirect_uri: Optional[str] = None) -> str:
        params = {
            "request_token": request_token.code,
            "redirect_uri": redirect_uri or request_token.redirect_uri,
        }
        return f"{self.base_url}/auth/authorize?{urllib.parse.urlencode(params)}"

    def obtain_access_token(self, consumer_key: str, request_token: RequestToken) -> Authorization:
        try:
            payload = self._post_form(
                f"{self.base_url}/v3/oauth/authorize",
                {
                    "consumer_key": consumer_key,
                    "code": request_token.code,
                },
            )
        except RejectedError as e:
            if e.error_code in PENDING_ERROR_CODES:
                raise PendingError(f"Request token has not been authorized yet: {e}") from e
            raise

        access_token = payload.get("access_token", "")
        if not access_token:
            raise PendingError(f"Pocket did not return an access token: {payload}")

        return Authorization(access_token=access_token, username=payload.get("username", ""))

    def _post_form(self, url: str, form: Dict[str, Any]) -> Dict[str, str]:
        data = {k: str(v) for k, v in (form or {}).items() if v is not None}
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "X-Accept": "application/x-www-form-urlencoded",
        }

        try:
            if self.http_client is not None:
                resp = self.http_client.post(url, data=data, headers=headers)
            else:
                timeout = float(self.config.get("request_timeout", 30))
                with httpx.Client(timeout=timeout, follow_redirects=False) as client:
                    resp = client.post(url, data=data, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"Pocket request to {url} failed: {e}") from e

        if resp.status_code >= 400:
            error_code = resp.headers.get("X-Error-Code")
            reason = resp.headers.get("X-Error") or resp.text
            raise RejectedError(
                f"Pocket request failed (HTTP {resp.status_code}): {reason}",
                status_code=resp.status_code,
                error_code=error_code,
            )

        return parse_response_body(resp)
