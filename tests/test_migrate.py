"""Tests for the Alembic upgrade helper and the migration scripts."""

import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from petsocial_moderation.db.session import Base
from petsocial_moderation.scripts import migrate

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_run_upgrade_head_points_alembic_at_project_migrations(mocker) -> None:
    upgrade = mocker.patch.object(migrate.command, "upgrade")

    migrate.run_upgrade_head()

    cfg, revision = upgrade.call_args.args
    assert revision == "head"
    assert os.path.basename(cfg.get_main_option("script_location")) == "migrations"
    assert cfg.get_main_option("sqlalchemy.url") == migrate.settings.database_url_sync


def _schema(engine) -> dict:
    inspector = inspect(engine)
    schema = {}
    for table in inspector.get_table_names():
        if table == "alembic_version":
            continue
        schema[table] = {
            "columns": {(c["name"], c["nullable"]) for c in inspector.get_columns(table)},
            "primary_key": tuple(inspector.get_pk_constraint(table)["constrained_columns"]),
            "indexes": {
                (ix["name"], tuple(ix["column_names"]), bool(ix["unique"]))
                for ix in inspector.get_indexes(table)
            },
            "unique": {
                tuple(uq["column_names"]) for uq in inspector.get_unique_constraints(table)
            },
        }
    return schema


def test_migrations_build_the_same_schema_as_the_models(tmp_path) -> None:
    migrated_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = Config()
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", migrated_url)
    command.upgrade(cfg, "head")

    declared = create_engine(f"sqlite:///{tmp_path / 'declared.db'}")
    Base.metadata.create_all(declared)
    migrated = create_engine(migrated_url)
    try:
        assert _schema(migrated) == _schema(declared)
    finally:
        migrated.dispose()
        declared.dispose()
