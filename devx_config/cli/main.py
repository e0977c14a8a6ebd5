"""CLI entrypoint for devx-config."""
import sys
import argparse
import logging
from pathlib import Path

from .prompts import ask, ask_yes_no
from .validators import validate_item_name

VERSION = "0.1.0"

# Configure logging to stderr; stdout is reserved for KEY=value output
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s %(name)s: %(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _service(args):
    """Resolve the service from flags and local files, exiting 2 on failure."""
    from devx_config.store.domains.service_config import ServiceConfigError, resolve_service

    try:
        return resolve_service(app=args.app, stack=args.stack, stage=args.stage)
    except ServiceConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


def _stores(args):
    """Build the stores from the tool config plus --profile/--region overrides."""
    from devx_config.store.domains.config_loader import load_config
    from devx_config.store.workflows.store_operations import build_stores

    config = load_config()
    if args.profile:
        config.profile = args.profile
    if args.region:
        config.region = args.region
    return build_stores(config)


def _fail(message: str, error: Exception) -> None:
    print(f"Error: {message}; {error}", file=sys.stderr)
    sys.exit(1)


def cmd_version(args):
    """Show version information."""
    print(f"devx-config {VERSION}")


def cmd_get(args):
    """Print one config item as KEY=value."""
    from devx_config.store.domains.errors import StoreError
    from devx_config.store.workflows.store_operations import get_item

    validate_item_name(args.name)
    service = _service(args)
    stores = _stores(args)

    try:
        item = get_item(stores, service, args.name, is_secret=args.secret)
    except StoreError as e:
        _fail(f"unable to get {args.name} for service '{service.prefix()}'", e)

    print(item)


def cmd_list(args):
    """Print every config item of the service as KEY=value lines."""
    from devx_config.store.domains.errors import StoreError
    from devx_config.store.workflows.store_operations import list_items, render_items

    service = _service(args)
    stores = _stores(args)

    try:
        items = list_items(stores, service)
    except StoreError as e:
        _fail(f"unable to list for service '{service.prefix()}'", e)

    for line in render_items(items):
        print(line)


def cmd_set(args):
    """Create or overwrite a config item."""
    from devx_config.store.domains.errors import StoreError
    from devx_config.store.workflows.store_operations import set_item

    validate_item_name(args.name)
    service = _service(args)
    stores = _stores(args)

    is_secret = args.secret
    if is_secret is None:
        is_secret = ask_yes_no("Is this parameter a secret?")

    try:
        set_item(stores, service, args.name, args.value, is_secret)
    except StoreError as e:
        _fail(f"unable to set '{args.name}' for service '{service.prefix()}'", e)


def cmd_delete(args):
    """Delete a config item after confirmation."""
    from devx_config.store.domains.errors import StoreError
    from devx_config.store.workflows.store_operations import delete_item

    validate_item_name(args.name)
    service = _service(args)

    if not args.yes and not ask_yes_no(f"Are you sure you want to delete '{args.name}'?"):
        print(f"Config item '{args.name}' has not been deleted.")
        return

    stores = _stores(args)
    try:
        delete_item(stores, service, args.name, is_secret=args.secret)
    except StoreError as e:
        _fail(f"unable to delete '{args.name}' for service '{service.prefix()}'", e)


def cmd_set_local_config(args):
    """Write a .devx-config file so stage/stack/app flags can be omitted."""
    from devx_config.store.domains.models import Service
    from devx_config.store.domains.service_config import ServiceConfigError, write_local_config

    app = args.app or ask("App: ")
    stack = args.stack or ask("Stack: ")
    stage = args.stage or ask("Stage: ")

    if not (app and stack and stage):
        print("Error: app, stack and stage must all be non-empty", file=sys.stderr)
        sys.exit(2)

    try:
        write_local_config(Service(stage=stage, stack=stack, app=app))
    except ServiceConfigError as e:
        _fail("unable to write .devx-config file", e)
    print(f"Wrote .devx-config for /{stage}/{stack}/{app}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from devx_config.store.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path and the settings it resolves to."""
    from devx_config.store.domains.config_loader import ConfigError, default_config_path, load_config
    from devx_config.store.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")
    if config_path_pref:
        found = "" if Path(config_path_pref).exists() else " (file not found)"
        print(f"Config path: {config_path_pref}{found}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        found = "" if default_config.exists() else " (file not found, using defaults)"
        print(f"Config path: {default_config}{found}")
        print("Source: default")

    try:
        config = load_config()
    except ConfigError as e:
        _fail("invalid configuration", e)

    print(f"Region: {config.region}")
    print(f"Profile: {config.profile or 'default'}")
    print(f"Secrets backend: {config.secrets_backend}")
    print(f"Secret retention days: {config.secret_retention_days}")
    print(f"Timeout seconds: {config.timeout_seconds}")


def cmd_config_clear(args):
    """Clear config path preference."""
    from devx_config.store.domains.config_loader import default_config_path
    from devx_config.store.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def _service_parent() -> argparse.ArgumentParser:
    """Flags shared by every command that talks to a store."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument("--app", default="", help="App for your service.")
    parent.add_argument("--stack", default="", help="Stack for your service.")
    parent.add_argument("--stage", default="", help="Stage for your service (typically 'CODE' or 'PROD').")
    parent.add_argument("--profile", default="", help="Profile for AWS credentials (if running locally).")
    parent.add_argument("--region", default="", help="AWS region (overrides config file).")
    parent.add_argument("--debug", action="store_true", help="Whether to enable debug logs.")
    return parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devx-config",
        description="Store and retrieve per-service config and secrets in AWS SSM and Secrets Manager",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (authentication, network, item not found, etc.)
  2 - Usage error (missing stage/stack/app, invalid item name, etc.)

Stage, stack and app are read from ./.devx-config or /etc/config/tags.json
when not given as flags. Flags win over files.

Configuration:
  Default location: ~/.config/devx-config/config.yml
  Custom path: Set with 'devx-config config set-path <path>'
  View current: Run 'devx-config config show'
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parent = _service_parent()

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("version", help="Show version information")

    get_parser = subparsers.add_parser(
        "get", parents=[parent], help="Gets specific config for service."
    )
    get_parser.add_argument("--name", required=True, help="Name of the config item to retrieve.")
    get_parser.add_argument("--secret", action="store_true", help="Read from the secrets backend.")

    subparsers.add_parser("list", parents=[parent], help="List all config for a service.")

    set_parser = subparsers.add_parser(
        "set", parents=[parent], help="Sets specific config for a service."
    )
    set_parser.add_argument("--name", required=True, help="Name of the config item to set.")
    set_parser.add_argument("--value", required=True, help="Value of the config item to set.")
    secret_group = set_parser.add_mutually_exclusive_group()
    secret_group.add_argument("--secret", dest="secret", action="store_true", help="Store as a secret.")
    secret_group.add_argument("--no-secret", dest="secret", action="store_false", help="Store as plain text.")
    set_parser.set_defaults(secret=None)

    delete_parser = subparsers.add_parser(
        "delete", parents=[parent], help="Deletes specific config for a service."
    )
    delete_parser.add_argument("--name", required=True, help="Name of the config item to delete.")
    delete_parser.add_argument("--secret", action="store_true", help="Delete from the secrets backend.")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")

    subparsers.add_parser(
        "set-local-config",
        parents=[parent],
        help="Creates a local .devx-config file to avoid typing the stack/stage/app args every time.",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage devx-config tool configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_set_path_parser = config_subparsers.add_parser("set-path", help="Set config file path")
    config_set_path_parser.add_argument("path", help="Path to config file")
    config_subparsers.add_parser("show", help="Show current config path and settings")
    config_subparsers.add_parser("clear", help="Clear config path preference")

    return parser


COMMANDS = {
    "version": cmd_version,
    "get": cmd_get,
    "list": cmd_list,
    "set": cmd_set,
    "delete": cmd_delete,
    "set-local-config": cmd_set_local_config,
}

CONFIG_COMMANDS = {
    "set-path": cmd_config_set_path,
    "show": cmd_config_show,
    "clear": cmd_config_clear,
}


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (authentication, network, item not found, etc.)
        2 - Usage errors (invalid arguments, invalid item name, etc.)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    if getattr(args, "debug", False):
        logging.getLogger("devx_config").setLevel(logging.DEBUG)

    try:
        if args.command == "config":
            handler = CONFIG_COMMANDS.get(args.config_command)
            if handler is None:
                parser.print_help()
                sys.exit(2)
            handler(args)
        else:
            COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
