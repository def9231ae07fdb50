"""Static governance checks for the Alembic revision chain.

Usage:
    python scripts/check_migration_chain.py

Checks:
- file names start with their revision id
- revision ids are unique and every down_revision exists
- the chain is linear with a single head
- every table declared in planbook.models is created by some revision
"""

from __future__ import annotations

import re
import sys
from pathlib import Path


BACKEND = Path(__file__).resolve().parents[1]
REVISION_RE = re.compile(r'^revision\s*=\s*["\']([^"\']+)["\']', re.MULTILINE)
DOWN_RE = re.compile(r'^down_revision\s*=\s*(.+)$', re.MULTILINE)
CREATE_TABLE_RE = re.compile(r'op\.create_table\(\s*["\']([^"\']+)["\']')
TABLENAME_RE = re.compile(r'__tablename__\s*=\s*["\']([^"\']+)["\']')


def _down_revision(raw: str | None) -> str | None:
    if raw is None:
        return None
    raw = raw.strip()
    if raw.startswith(("'", '"')) and raw.endswith(("'", '"')):
        return raw[1:-1]
    return None


def _model_tables() -> set[str]:
    tables: set[str] = set()
    for file in (BACKEND / "planbook" / "models").glob("*.py"):
        tables.update(TABLENAME_RE.findall(file.read_text(encoding="utf-8")))
    return tables


def main() -> int:
    files = sorted((BACKEND / "alembic" / "versions").glob("*.py"))

    parents: dict[str, str | None] = {}
    created: set[str] = set()
    errors: list[str] = []

    for file in files:
        text = file.read_text(encoding="utf-8")
        rev_m = REVISION_RE.search(text)
        if not rev_m:
            errors.append(f"{file.name}: missing revision")
            continue
        rev = rev_m.group(1)
        if not file.name.startswith(rev):
            errors.append(f"{file.name}: file name does not start with revision id {rev}")
        if rev in parents:
            errors.append(f"Duplicate revision id {rev} in {file.name}")
        down_m = DOWN_RE.search(text)
        parents[rev] = _down_revision(down_m.group(1) if down_m else None)
        created.update(CREATE_TABLE_RE.findall(text))

    for rev, down in parents.items():
        if down is not None and down not in parents:
            errors.append(f"Revision {rev} references missing down_revision {down}")

    children: dict[str, list[str]] = {}
    for rev, down in parents.items():
        if down is not None:
            children.setdefault(down, []).append(rev)
    for down, revs in children.items():
        if len(revs) > 1:
            errors.append(f"Revision {down} is branched by {sorted(revs)}")

    heads = [r for r in parents if r not in children]
    if len(heads) != 1:
        errors.append(f"Expected exactly one head revision, found {len(heads)} ({heads})")

    missing = sorted(_model_tables() - created)
    if missing:
        errors.append(f"Model tables without a create_table migration: {missing}")

    print("Migration chain check")
    print(f"- files: {len(files)}")
    print(f"- revisions: {len(parents)}")
    print(f"- tables created: {len(created)}")

    if errors:
        for err in errors:
            print(f"[FAIL] {err}")
        return 1

    print(f"[PASS] single head: {heads[0]}")
    print("[PASS] every model table has a migration")
    return 0


if __name__ == "__main__":
    sys.exit(main())
