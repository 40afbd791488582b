import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .auth import POCKET_BASE_URL
from .errors import NetworkError, RejectedError

logger = logging.getLogger(__name__)


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class PocketItem:
    """Normalized entry of the ``list`` map returned by /v3/get."""

    item_id: int
    title: str
    url: str
    sort_id: int = 0
    excerpt: str = ""
    tags: List[str] = field(default_factory=list)
    time_added: int = 0

    @staticmethod
    def from_api(payload: Dict[str, Any]) -> "PocketItem":
        # Pocket fills resolved_* once it has fetched the page; given_* is what was saved.
        title = payload.get("resolved_title") or payload.get("given_title") or ""
        url = payload.get("resolved_url") or payload.get("given_url") or ""
        tags = payload.get("tags") or {}

        return PocketItem(
            item_id=_to_int(payload.get("item_id")),
            title=str(title),
            url=str(url),
            sort_id=_to_int(payload.get("sort_id")),
            excerpt=str(payload.get("excerpt") or ""),
            tags=sorted(tags.keys()) if isinstance(tags, dict) else [],
            time_added=_to_int(payload.get("time_added")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "title": self.title,
            "url": self.url,
            "sort_id": self.sort_id,
            "excerpt": self.excerpt,
            "tags": ",".join(self.tags),
            "time_added": self.time_added,
        }


class PocketClient:
    """Pocket v3 API client for an authorized user.

    Every call posts JSON carrying the consumer key and access token and asks
    for a JSON response via ``X-Accept``.
    """

    def __init__(
        self,
        consumer_key: str,
        access_token: str,
        *,
        config: Optional[Dict[str, Any]] = None,
        base_url: str = POCKET_BASE_URL,
        http_client: Optional[httpx.Client] = None,
    ):
        self.consumer_key = consumer_key
        self.access_token = access_token
        self.config = config or {}
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    # -----------------
    # HTTP helpers
    # -----------------

    def request_json(self, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/v3{path}"
        payload = {k: v for k, v in (body or {}).items() if v is not None}
        payload["consumer_key"] = self.consumer_key
        payload["access_token"] = self.access_token
        headers = {
            "Content-Type": "application/json; charset=UTF-8",
            "X-Accept": "application/json",
        }

        try:
            if self.http_client is not None:
                resp = self.http_client.post(url, json=payload, headers=headers)
            else:
                timeout = float(self.config.get("request_timeout", 30))
                with httpx.Client(timeout=timeout) as client:
                    resp = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"Pocket API request to {path} failed: {e}") from e

        if resp.status_code >= 400:
            reason = resp.headers.get("X-Error") or resp.text
            raise RejectedError(
                f"Pocket API error {resp.status_code}: {reason}",
                status_code=resp.status_code,
                error_code=resp.headers.get("X-Error-Code"),
            )

        if not resp.text:
            return {}

        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise RejectedError(f"Pocket API response was not JSON: {resp.text}", status_code=resp.status_code) from e

        return data if isinstance(data, dict) else {"data": data}

    # -----------------
    # Endpoints
    # -----------------

    def retrieve(
        self,
        *,
        count: Optional[int] = None,
        domain: Optional[str] = None,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        state: Optional[str] = None,
        detail_type: str = "simple",
    ) -> Dict[str, Any]:
        return self.request_json(
            "/get",
            {
                "count": count,
                "domain": domain,
                "search": search,
                "tag": tag,
                "state": state,
                "detailType": detail_type,
            },
        )

    def add(self, url: str, *, title: Optional[str] = None, tags: Optional[str] = None) -> Dict[str, Any]:
        return self.request_json("/add", {"url": url, "title": title, "tags": tags})

    def modify(self, actions: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        return self.request_json("/send", {"actions": list(actions)})

    def archive(self, item_id: int) -> Dict[str, Any]:
        return self.modify([{"action": "archive", "item_id": int(item_id)}])

    def get_items(self, **options: Any) -> List[PocketItem]:
        """Retrieve items and return them ordered by Pocket's sort_id."""

        res = self.retrieve(**options)
        listing = res.get("list") or {}
        # Pocket sends an empty JSON array instead of an object when nothing matches.
        values = listing.values() if isinstance(listing, dict) else []
        items = [PocketItem.from_api(v) for v in values if isinstance(v, dict)]
        items.sort(key=lambda item: item.sort_id)
        logger.debug("Retrieved %d items", len(items))
        return items
