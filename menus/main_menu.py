import questionary
from managers.item_manager import CommandContext, list_items, add_item, archive_item
from pocket_api.errors import PocketError
from utils.logger import log_info, log_error


def main_menu() -> str:
    return questionary.select(
        "📚 Pocket — What would you like to do?",
        choices=[
            "List items",
            "Add item",
            "Archive item",
            "Exit"
        ]
    ).ask()


def run_menu(ctx: CommandContext):
    """
    Interactive loop used when pocket is started without a subcommand.
    Errors from a single action are reported and the menu keeps running.
    """
    while True:
        choice = main_menu()

        try:
            if choice == "List items":
                list_items_menu(ctx)

            elif choice == "Add item":
                add_item_menu(ctx)

            elif choice == "Archive item":
                archive_item_menu(ctx)

            # Exit, or None when the prompt is cancelled
            else:
                log_info("Exiting...")
                break
        except (PocketError, ValueError) as e:
            log_error(str(e))


def list_items_menu(ctx: CommandContext):
    search = questionary.text("Search (leave empty for all):", default="").ask()
    count = questionary.text("How many items?", default=str(ctx.config.get("list_count", 10))).ask()

    lines = list_items(ctx, search=search, count=count)
    if not lines:
        log_info("No items found.")
        return

    print()
    for line in lines:
        print(line)
    print()


def add_item_menu(ctx: CommandContext):
    url = questionary.text("URL to save:").ask()
    if not url:
        return

    title = questionary.text("Title (optional):", default="").ask()
    tags = questionary.text("Tags, comma-separated (optional):", default="").ask()
    add_item(ctx, url, title=title, tags=tags)


def archive_item_menu(ctx: CommandContext):
    item_id = questionary.text("Item id to archive:").ask()
    if not item_id:
        return

    if questionary.confirm(f"Archive item {item_id}?", default=True).ask():
        archive_item(ctx, item_id)
