"""Input validation for CLI arguments."""
import re
import sys

# Characters accepted by both SSM parameter names and Secrets Manager names
ITEM_NAME_PATTERN = r'^[a-zA-Z0-9_.\-]+(/[a-zA-Z0-9_.\-]+)*$'


def validate_item_name(name: str) -> None:
    """
    Validate a config item name relative to the service prefix.

    Allowed: letters, digits, "_", "-", "." and "/" as a separator between
    non-empty segments. The name must not start or end with "/".

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Config item name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if not re.match(ITEM_NAME_PATTERN, name):
        print(f"Error: Invalid config item name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-), dots (.)", file=sys.stderr)
        print("Use slashes (/) to nest names, e.g. 'database/password'.", file=sys.stderr)
        print("Names are relative to the service: do not include the /STAGE/stack/app prefix.", file=sys.stderr)
        sys.exit(2)
