# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for users."""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import User

USER_COLS = "id, login, global_admin, created_at"


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        login=row["login"],
        global_admin=bool(row["global_admin"]),
        created_at=from_db(row["created_at"]),
    )


class UserRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create(self, user: User) -> User:
        user.created_at = user.created_at or utcnow()
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO users (id, login, global_admin, created_at)
                    VALUES (:id, :login, :global_admin, :created_at)
                """),
                {"id": user.id, "login": user.login,
                 "global_admin": user.global_admin, "created_at": to_db(user.created_at)},
            )
        return user

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, user_id: str) -> Optional[User]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {USER_COLS} FROM users WHERE id = :id"), {"id": user_id}
            ).mappings().first()
        return _row_to_user(row) if row else None

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        stmt = text(f"SELECT {USER_COLS} FROM users WHERE id IN :ids").bindparams(
            bindparam("ids", expanding=True)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, {"ids": ids}).mappings().all()
        return {row["id"]: _row_to_user(row) for row in rows}

    def login_taken(self, login: str) -> bool:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT 1 FROM users WHERE login = :login"), {"login": login}
            ).first() is not None

    def list_all(self) -> List[User]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {USER_COLS} FROM users ORDER BY created_at, id")
            ).mappings().all()
        return [_row_to_user(r) for r in rows]
