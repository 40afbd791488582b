from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import DEFAULT_CONFIG
from pocket_api.client import PocketClient, PocketItem
from utils.logger import log_info, log_success


@dataclass
class CommandContext:
    """Everything an item command needs: settings and an authorized client."""

    config: Dict[str, Any]
    client: PocketClient


def render_item(item: PocketItem, template: str) -> str:
    """Render one item with a str.format template, e.g. "{item_id} {title}"."""
    try:
        return template.format(**item.to_dict())
    except (AttributeError, KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid item template {template!r}: {e}") from e


def parse_count(count: Any, default: int) -> int:
    if count in (None, ""):
        return default
    try:
        value = int(count)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def list_items(
    ctx: CommandContext,
    *,
    domain: Optional[str] = None,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    count: Any = None,
    template: Optional[str] = None,
) -> List[str]:
    """
    Retrieve items and return one rendered line per item, ordered by sort_id.

    An unparsable count falls back to the configured list_count.
    """
    default_count = int(ctx.config.get("list_count", DEFAULT_CONFIG["list_count"]))
    template = template or ctx.config.get("item_template") or DEFAULT_CONFIG["item_template"]

    items = ctx.client.get_items(
        count=parse_count(count, default_count),
        domain=domain or None,
        search=search or None,
        tag=tag or None,
    )
    return [render_item(item, template) for item in items]


def add_item(ctx: CommandContext, url: str, *, title: Optional[str] = None, tags: Optional[str] = None) -> Dict[str, Any]:
    url = (url or "").strip()
    if not url:
        raise ValueError("url not found")

    res = ctx.client.add(url, title=title or None, tags=tags or None)
    log_success(f"Added {url}")
    return res


def archive_item(ctx: CommandContext, item_id: Any) -> Dict[str, Any]:
    item_id_str = str(item_id or "").strip()
    if not item_id_str:
        raise ValueError("item id not found")

    try:
        parsed_id = int(item_id_str)
    except ValueError:
        raise ValueError("item id should be number")

    res = ctx.client.archive(parsed_id)
    results = res.get("action_results") or []
    if results and all(bool(r) for r in results):
        log_success(f"Archived item {parsed_id}")
    else:
        log_info(f"Archive request for item {parsed_id} returned: {res}")
    return res
