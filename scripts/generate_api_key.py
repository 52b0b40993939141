"""Generate a new API key and the SQL to provision it.

Keys are inserted out-of-band; this script only prints them.
Run: python scripts/generate_api_key.py --user-id <uuid> --name "Dev key"
"""

import argparse
import secrets

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

console = Console()

KEY_BYTES = 32


def generate_api_key(nbytes: int = KEY_BYTES) -> str:
    """Random hex key; 32 bytes gives 64 characters."""
    return secrets.token_hex(nbytes)


def insert_statement(api_key: str, user_id: str, name: str | None = None, schema: str = "public") -> str:
    """INSERT for the api_keys table. Single quotes in values are escaped."""

    def quote(value: str | None) -> str:
        if value is None:
            return "NULL"
        return "'" + value.replace("'", "''") + "'"

    return (
        f"INSERT INTO {schema}.api_keys (api_key, user_id, name, is_active)\n"
        f"VALUES ({quote(api_key)}, {quote(user_id)}, {quote(name)}, true);"
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate an API key for the accessibility API",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--user-id", type=str, default=None, help="Owner id; prints an INSERT statement when given")
    parser.add_argument("--name", type=str, default=None, help="Label stored with the key")
    parser.add_argument("--bytes", type=int, default=KEY_BYTES, help="Random bytes in the key")
    parser.add_argument("--schema", type=str, default="public", help="Schema holding api_keys")
    args = parser.parse_args()

    if args.bytes < 16:
        parser.error("--bytes must be at least 16")

    api_key = generate_api_key(args.bytes)
    console.print(Panel(api_key, title="API key", expand=False))
    if args.user_id:
        console.print(Syntax(insert_statement(api_key, args.user_id, args.name, args.schema), "sql"))
    else:
        console.print("[dim]Pass --user-id to print the INSERT for api_keys.[/dim]")


if __name__ == "__main__":
    main()
