# Managers module exports
from managers.item_manager import CommandContext, list_items, add_item, archive_item

__all__ = [
    "CommandContext",
    "list_items",
    "add_item",
    "archive_item",
]
