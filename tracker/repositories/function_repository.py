# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for the global function (role) registry."""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import Function

FUNCTION_COLS = "id, name, is_admin, created_at"
# "First" function means first created; id breaks ties.
FUNCTION_ORDER = "ORDER BY created_at, id"


def _row_to_function(row) -> Function:
    return Function(
        id=row["id"],
        name=row["name"],
        is_admin=bool(row["is_admin"]),
        created_at=from_db(row["created_at"]),
    )


class FunctionRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create(self, function: Function) -> Function:
        function.created_at = function.created_at or utcnow()
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO functions (id, name, is_admin, created_at)
                    VALUES (:id, :name, :is_admin, :created_at)
                """),
                {"id": function.id, "name": function.name,
                 "is_admin": function.is_admin, "created_at": to_db(function.created_at)},
            )
        return function

    def set_admin_flags(self, admin_ids: set[str]) -> List[Function]:
        """Rewrite every flag in one transaction; return the full registry."""
        with self._engine.begin() as conn:
            rows = conn.execute(
                text(f"SELECT {FUNCTION_COLS} FROM functions {FUNCTION_ORDER}")
            ).mappings().all()
            functions = [_row_to_function(r) for r in rows]
            for function in functions:
                wanted = function.id in admin_ids
                if function.is_admin != wanted:
                    conn.execute(
                        text("UPDATE functions SET is_admin = :flag WHERE id = :id"),
                        {"flag": wanted, "id": function.id},
                    )
                    function.is_admin = wanted
        return functions

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, function_id: str) -> Optional[Function]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {FUNCTION_COLS} FROM functions WHERE id = :id"),
                {"id": function_id},
            ).mappings().first()
        return _row_to_function(row) if row else None

    def get_many(self, function_ids: Iterable[str]) -> Dict[str, Function]:
        ids = list(set(function_ids))
        if not ids:
            return {}
        stmt = text(f"SELECT {FUNCTION_COLS} FROM functions WHERE id IN :ids").bindparams(
            bindparam("ids", expanding=True)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, {"ids": ids}).mappings().all()
        return {row["id"]: _row_to_function(row) for row in rows}

    def first_with_flag(self, is_admin: bool) -> Optional[Function]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {FUNCTION_COLS} FROM functions WHERE is_admin = :flag "
                     f"{FUNCTION_ORDER} LIMIT 1"),
                {"flag": is_admin},
            ).mappings().first()
        return _row_to_function(row) if row else None

    def name_taken(self, name: str) -> bool:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT 1 FROM functions WHERE name = :name"), {"name": name}
            ).first() is not None

    def list_all(self) -> List[Function]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {FUNCTION_COLS} FROM functions {FUNCTION_ORDER}")
            ).mappings().all()
        return [_row_to_function(r) for r in rows]

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM functions")).scalar() or 0
