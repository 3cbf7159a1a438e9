#!/usr/bin/env python
"""
CI guard for the Alembic history.

Fails unless there is exactly one head and upgrading an empty SQLite database
to it yields every table and index the models declare.
"""

import os
import sys
import tempfile
from pathlib import Path

from sqlalchemy import create_engine, inspect

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def find_up(name: str, start: Path) -> Path | None:
    p = start.resolve()
    while True:
        cand = p / name
        if cand.exists():
            return cand
        if p.parent == p:
            return None
        p = p.parent


def load_config(ini: Path, database_url: str | None = None) -> Config:
    cfg = Config(str(ini))
    cfg.set_main_option("script_location", str(ini.parent / "alembic"))
    cfg.attributes["configure_logger"] = False
    if database_url:
        cfg.attributes["database_url"] = database_url
    return cfg


def heads(ini: Path) -> list[str]:
    return list(ScriptDirectory.from_config(load_config(ini)).get_heads())


def schema_drift(ini: Path) -> list[str]:
    """Upgrade a scratch database to head and list what differs from the models."""
    from db import Base
    import models  # noqa: F401

    problems: list[str] = []
    with tempfile.TemporaryDirectory(prefix="exam-authority-migrate-") as tmp:
        url = "sqlite:///" + os.path.join(tmp, "migrate.db")
        command.upgrade(load_config(ini, url), "head")

        engine = create_engine(url)
        try:
            insp = inspect(engine)
            migrated = set(insp.get_table_names()) - {"alembic_version"}
            declared = set(Base.metadata.tables)
            for name in sorted(declared - migrated):
                problems.append(f"table missing from migrations: {name}")
            for name in sorted(migrated - declared):
                problems.append(f"table not in models: {name}")

            for name in sorted(declared & migrated):
                cols = {c["name"] for c in insp.get_columns(name)}
                for col in Base.metadata.tables[name].columns:
                    if col.name not in cols:
                        problems.append(f"column missing from migrations: {name}.{col.name}")
                indexes = {i["name"] for i in insp.get_indexes(name)}
                for index in Base.metadata.tables[name].indexes:
                    if index.name not in indexes:
                        problems.append(f"index missing from migrations: {index.name}")
        finally:
            engine.dispose()
    return problems


def main():
    here = Path(__file__).resolve()
    # Start from script dir; search upwards for alembic.ini
    ini = find_up("alembic.ini", here.parent)
    if not ini:
        print("Error: could not find alembic.ini by walking up from", here)
        sys.exit(1)

    found = heads(ini)
    if len(found) != 1:
        print(f"Error: expected 1 Alembic head, found {len(found)}: {found}")
        sys.exit(1)

    problems = schema_drift(ini)
    if problems:
        print("Error: migrations do not match models:")
        for p in problems:
            print("  -", p)
        sys.exit(1)
    print(f"Alembic head OK: {found[0]}")


if __name__ == "__main__":
    main()
