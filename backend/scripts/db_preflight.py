"""Deployment preflight for the PlanBook service.

Usage:
    python scripts/db_preflight.py

Reads the same environment variables as ``planbook.config.Settings`` and
exits non-zero when a production control fails.
"""

from __future__ import annotations

import os
import sys


TRUTHY = {"1", "true", "yes", "y", "on"}


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


def _int_env(name: str, default: int) -> int | None:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return None


def run() -> int:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    database_url = os.getenv("DATABASE_URL", "sqlite:///./planbook.db")
    auto_create_tables = _bool_env("AUTO_CREATE_TABLES", True)
    debug = _bool_env("DEBUG", True)
    cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    user_header = os.getenv("USER_ID_HEADER", "X-User-Id").strip()

    checks: list[tuple[str, bool, str]] = [
        ("ENVIRONMENT is explicitly set", bool(environment), f"ENVIRONMENT={environment or '<empty>'}"),
        ("USER_ID_HEADER is set", bool(user_header), f"USER_ID_HEADER={user_header or '<empty>'}"),
    ]
    for name, default in (("MAX_RESOLVED_PERIODS", 1000), ("MAX_FORMULA_LENGTH", 1000), ("MAX_BULK_UPDATES", 5000)):
        value = _int_env(name, default)
        checks.append((f"{name} is a positive integer", value is not None and value > 0, f"{name}={value}"))

    if environment in {"production", "prod"}:
        checks.extend(
            [
                ("DATABASE_URL is not SQLite", "sqlite" not in database_url.lower(), f"DATABASE_URL={database_url}"),
                ("AUTO_CREATE_TABLES is disabled", not auto_create_tables, f"AUTO_CREATE_TABLES={auto_create_tables}"),
                ("DEBUG is disabled", not debug, f"DEBUG={debug}"),
                ("CORS_ORIGINS has no wildcard", "*" not in cors_origins, f"CORS_ORIGINS={','.join(cors_origins)}"),
            ]
        )

    has_failures = False
    print("PlanBook DB Preflight")
    print(f"- environment: {environment}")
    for title, ok, detail in checks:
        marker = "PASS" if ok else "FAIL"
        print(f"[{marker}] {title} ({detail})")
        if not ok:
            has_failures = True

    if has_failures:
        print("\nPreflight failed. Resolve failed checks before deployment.")
        return 1

    print("\nPreflight passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
