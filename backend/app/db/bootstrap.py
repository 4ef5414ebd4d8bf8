from __future__ import annotations

import logging

from sqlalchemy import inspect

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES: tuple[str, ...] = (
    "teachers",
    "school_classes",
    "subjects",
    "periods",
    "schedule_slots",
    "teacher_absences",
    "proxy_assignments",
    "activity_logs",
)


def _assert_required_tables() -> None:
    with engine.begin() as connection:
        table_names = set(inspect(connection).get_table_names())
        missing_tables = [name for name in REQUIRED_TABLES if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_tables()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
