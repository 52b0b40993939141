"""Smoke check against a running instance.

Walks health, auth failures, auto-creation, update round-trip and
whitelisting, then prints a pass/fail table.
Run: python scripts/smoke_check.py --api-key <key> [--base-url http://localhost:3000]
"""

import argparse
import sys
import uuid
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from rich.console import Console
from rich.table import Table

console = Console()


@dataclass
class Check:
    name: str
    passed: bool
    details: str = ""


def run_checks(client: httpx.Client, api_key: str, site_id: str) -> list[Check]:
    checks: list[Check] = []
    auth = {"x-api-key": api_key}

    def record(name: str, response: httpx.Response, predicate: Callable[[httpx.Response], bool]) -> None:
        checks.append(Check(name, predicate(response), f"status={response.status_code}"))

    record("health", client.get("/health"), lambda r: r.status_code == 200)
    record("missing key -> 401", client.get("/api/accessibility/config", params={"siteId": site_id}), lambda r: r.status_code == 401)
    record(
        "invalid key -> 403",
        client.get("/api/accessibility/config", params={"siteId": site_id}, headers={"x-api-key": "invalid_key_12345"}),
        lambda r: r.status_code == 403,
    )
    record(
        "missing siteId -> 400",
        client.get("/api/accessibility/config", headers=auth),
        lambda r: r.status_code == 400,
    )
    record(
        "auto-create returns defaults",
        client.get("/api/accessibility/config", params={"siteId": site_id}, headers=auth),
        lambda r: r.status_code == 200 and r.json()["data"]["config"]["cursor_speed"] == 10,
    )
    record(
        "update drops unknown fields",
        client.put(
            f"/api/accessibility/sites/{site_id}/config",
            json={"cursor_speed": 15, "scroll_speed": 20, "unsupported_field": "x"},
            headers=auth,
        ),
        lambda r: r.status_code == 200 and "unsupported_field" not in r.json()["data"]["config"],
    )
    record(
        "update persisted",
        client.get("/api/accessibility/config", params={"siteId": site_id}, headers=auth),
        lambda r: r.status_code == 200 and r.json()["data"]["config"]["scroll_speed"] == 20,
    )
    record(
        "empty update -> 400",
        client.put(f"/api/accessibility/sites/{site_id}/config", json={}, headers=auth),
        lambda r: r.status_code == 400,
    )
    record(
        "unknown site update -> 404",
        client.put(f"/api/accessibility/sites/{site_id}-missing/config", json={"cursor_speed": 1}, headers=auth),
        lambda r: r.status_code == 404,
    )
    return checks


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Smoke check a running accessibility API",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--base-url", type=str, default="http://localhost:3000")
    parser.add_argument("--api-key", type=str, required=True)
    parser.add_argument("--site-id", type=str, default=None, help="Defaults to a fresh random site id")
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args()

    site_id = args.site_id or f"smoke-{uuid.uuid4().hex[:8]}"
    try:
        with httpx.Client(base_url=args.base_url, timeout=args.timeout) as client:
            checks = run_checks(client, args.api_key, site_id)
    except httpx.HTTPError as e:
        console.print(f"[red]Cannot reach {args.base_url}: {e}[/red]")
        sys.exit(2)

    table = Table(title=f"Smoke check ({site_id})")
    table.add_column("Check")
    table.add_column("Result")
    table.add_column("Details", style="dim")
    for check in checks:
        table.add_row(check.name, "[green]PASS[/green]" if check.passed else "[red]FAIL[/red]", check.details)
    console.print(table)

    failed = sum(not c.passed for c in checks)
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
