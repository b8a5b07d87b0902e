# tests/test_migrations.py
from __future__ import annotations

from alembic import command
from sqlalchemy import create_engine, inspect

from roomy.db import Base, alembic_config


def _upgraded(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path}/migrated.db", future=True)
    cfg = alembic_config()
    with eng.begin() as conn:
        cfg.attributes["connection"] = conn
        command.upgrade(cfg, "head")
    return eng, cfg


def test_migrations_build_the_mapped_schema(tmp_path):
    eng, _ = _upgraded(tmp_path)
    insp = inspect(eng)

    assert set(insp.get_table_names()) - {"alembic_version"} == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        migrated = {c["name"]: c["nullable"] for c in insp.get_columns(name)}
        assert migrated == {c.name: c.nullable for c in table.columns}, name


def test_audit_entity_id_holds_long_file_keys(tmp_path):
    eng, _ = _upgraded(tmp_path)
    col = next(c for c in inspect(eng).get_columns("audit_events") if c["name"] == "entity_id")
    assert col["type"].length == 512


def test_downgrade_to_base_drops_everything(tmp_path):
    eng, cfg = _upgraded(tmp_path)
    with eng.begin() as conn:
        cfg.attributes["connection"] = conn
        command.downgrade(cfg, "base")
    assert set(inspect(eng).get_table_names()) <= {"alembic_version"}
