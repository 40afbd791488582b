import argparse
import json
import sys
from typing import List, Optional

from config import load_config, ensure_config_dir, validate_config
from managers.item_manager import CommandContext, list_items, add_item, archive_item
from pocket_api import Authorizer, CredentialStore, PocketClient, __version__
from pocket_api.errors import PocketError
from utils.logger import setup_logging, log_info, log_warning, log_error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pocket", description="A Pocket command line client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config-dir", help="Config directory (default: $POCKET_CONFIG_DIR or ~/.config/pocket)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("--reauth", action="store_true", help="Ignore the cached authorization and authorize again")

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", aliases=["l"], help="Show items")
    list_parser.add_argument("-f", "--format", help='A str.format template to show items, e.g. "{item_id} {title}"')
    list_parser.add_argument("-d", "--domain", help="Filter items by its domain when listing.")
    list_parser.add_argument("-s", "--search", help="Search query when listing.")
    list_parser.add_argument("-c", "--count", help="Only return count number of items.")
    list_parser.add_argument("-t", "--tag", help="Filter items by a tag when listing.")

    add_parser = subparsers.add_parser("add", aliases=["a"], help="Add item")
    add_parser.add_argument("url", nargs="?", default="")
    add_parser.add_argument("-t", "--title", help="A manually specified title for the article")
    add_parser.add_argument("-g", "--tags", help="A comma-separated list of tags")

    archive_parser = subparsers.add_parser("archive", help="Archive item")
    archive_parser.add_argument("item_id", nargs="?", default="")

    return parser


def build_context(config: dict, *, reauth: bool = False) -> CommandContext:
    """Resolve credentials (prompting / authorizing as needed) and build an authorized client."""
    store = CredentialStore(config)
    consumer_key = store.load_consumer_key()

    result = Authorizer(config, consumer_key, store=store).acquire(force=reauth)
    if result.warning:
        log_warning(result.warning)
    elif not result.from_cache:
        log_info(f"Authorized as {result.authorization.username or 'unknown user'}")

    client = PocketClient(consumer_key, result.authorization.access_token, config=config)
    return CommandContext(config=config, client=client)


def run_command(ctx: CommandContext, args: argparse.Namespace) -> int:
    if args.command in ("list", "l"):
        for line in list_items(
            ctx,
            domain=args.domain,
            search=args.search,
            tag=args.tag,
            count=args.count,
            template=args.format,
        ):
            print(line)

    elif args.command in ("add", "a"):
        add_item(ctx, args.url, title=args.title, tags=args.tags)

    elif args.command == "archive":
        archive_item(ctx, args.item_id)

    else:
        from menus.main_menu import run_menu
        run_menu(ctx)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config_dir)
    except json.JSONDecodeError as e:
        setup_logging()
        log_error(f"Config file contains invalid JSON: {e}")
        return 1
    except (OSError, ValueError) as e:
        setup_logging()
        log_error(f"Error loading config: {e}")
        return 1

    setup_logging("DEBUG" if args.verbose else config.get("log_level"))

    is_valid, errors = validate_config(config)
    if not is_valid:
        for err in errors:
            log_error(err)
        return 1

    try:
        ensure_config_dir(config)
        ctx = build_context(config, reauth=args.reauth)
        return run_command(ctx, args)
    except (PocketError, ValueError, OSError) as e:
        log_error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        log_info("Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
