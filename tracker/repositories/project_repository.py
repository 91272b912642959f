# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for projects, their embedded members, and owned records."""
import json
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from tracker.core.exceptions import RecordInvalid, StaleProjectError
from tracker.core.logging import get_logger
from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import Event, Project, ProjectMember
from tracker.repositories.event_repository import insert_event

logger = get_logger(__name__)

PROJECT_COLS = (
    "id, name, description, num_ticket, tag_counts, lock_version, created_at, updated_at"
)
MEMBER_COLS = "id, project_id, user_id, user_name, function_id, function_name, is_admin"

NAME_TAKEN = "has already been taken"


def _row_to_member(row) -> ProjectMember:
    return ProjectMember(
        id=row["id"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        function_id=row["function_id"],
        function_name=row["function_name"],
        is_admin=bool(row["is_admin"]),
    )


def _row_to_project(row, members: List[ProjectMember]) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        num_ticket=row["num_ticket"],
        tag_counts=json.loads(row["tag_counts"] or "{}"),
        lock_version=row["lock_version"],
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
        project_members=members,
    )


class ProjectRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def save(self, project: Project, events: List[Event]) -> Project:
        """
        Persist the project row, replace its member rows and append ``events``,
        all in one transaction. Updates are guarded by ``lock_version``.
        ``num_ticket`` and ``tag_counts`` are owned by their own operations and
        are never written here.
        """
        now = utcnow()
        inserting = project.created_at is None
        try:
            with self._engine.begin() as conn:
                if inserting:
                    conn.execute(
                        text(f"""
                            INSERT INTO projects ({PROJECT_COLS})
                            VALUES (:id, :name, :description, NULL, '{{}}', 0, :ts, :ts)
                        """),
                        {"id": project.id, "name": project.name,
                         "description": project.description, "ts": to_db(now)},
                    )
                    new_version = 0
                else:
                    result = conn.execute(
                        text("""
                            UPDATE projects
                               SET name = :name, description = :description,
                                   updated_at = :ts, lock_version = lock_version + 1
                             WHERE id = :id AND lock_version = :version
                        """),
                        {"id": project.id, "name": project.name,
                         "description": project.description, "ts": to_db(now),
                         "version": project.lock_version},
                    )
                    if result.rowcount == 0:
                        if not self._exists(conn, project.id):
                            raise KeyError(f"Project {project.id} not found")
                        raise StaleProjectError(
                            f"Project {project.id} was modified concurrently; reload and retry"
                        )
                    new_version = project.lock_version + 1
                self._replace_members(conn, project)
                for event in events:
                    insert_event(conn, event)
        except IntegrityError as exc:
            if self.name_taken(project.name, exclude_id=project.id):
                raise RecordInvalid({"name": [NAME_TAKEN]}) from exc
            raise

        if inserting:
            project.created_at = now
        project.updated_at = now
        project.lock_version = new_version
        return project

    def issue_ticket_number(self, project_id: str) -> int:
        """
        Increment-and-fetch of the per-project counter in one transaction.
        The UPDATE takes the row write lock; callers on a shared connection
        must serialize issuers themselves.
        """
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE projects SET num_ticket = COALESCE(num_ticket, 1) + 1 WHERE id = :id"),
                {"id": project_id},
            )
            if result.rowcount == 0:
                raise KeyError(f"Project {project_id} not found")
            issued = conn.execute(
                text("SELECT num_ticket FROM projects WHERE id = :id"), {"id": project_id}
            ).scalar()
        return issued - 1

    def write_tag_counts(self, project_id: str, tag_counts: Dict[str, int]) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(
                text("UPDATE projects SET tag_counts = :counts WHERE id = :id"),
                {"id": project_id, "counts": json.dumps(tag_counts, sort_keys=True)},
            )
            if result.rowcount == 0:
                raise KeyError(f"Project {project_id} not found")

    def delete(self, project_id: str) -> Dict[str, int]:
        """Delete a project and everything it owns. Returns per-table counts."""
        removed: Dict[str, int] = {}
        with self._engine.begin() as conn:
            if not self._exists(conn, project_id):
                raise KeyError(f"Project {project_id} not found")
            for table in ("tickets", "milestones", "events", "project_members"):
                removed[table] = conn.execute(
                    text(f"DELETE FROM {table} WHERE project_id = :pid"), {"pid": project_id}
                ).rowcount
            conn.execute(text("DELETE FROM projects WHERE id = :id"), {"id": project_id})
        logger.info("Project rows deleted id=%s removed=%s", project_id, removed)
        return removed

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, project_id: str) -> Optional[Project]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {PROJECT_COLS} FROM projects WHERE id = :id"), {"id": project_id}
            ).mappings().first()
            if not row:
                return None
            members = self._load_members(conn, project_id)
        return _row_to_project(row, members)

    def list_all(self) -> List[Project]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {PROJECT_COLS} FROM projects ORDER BY name")
            ).mappings().all()
            return [_row_to_project(r, self._load_members(conn, r["id"])) for r in rows]

    def name_taken(self, name: Optional[str], exclude_id: Optional[str] = None) -> bool:
        if not name:
            return False
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT id FROM projects WHERE name = :name"), {"name": name}
            ).first()
        return row is not None and row[0] != exclude_id

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM projects")).scalar() or 0

    def count_owned(self, table: str, project_id: str) -> int:
        if table not in ("tickets", "milestones", "events", "project_members"):
            raise ValueError(f"Unknown owned table '{table}'")
        with self._engine.connect() as conn:
            return conn.execute(
                text(f"SELECT COUNT(*) FROM {table} WHERE project_id = :pid"), {"pid": project_id}
            ).scalar() or 0

    def verify_connection(self):
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    # ── Private ────────────────────────────────────────────────────────

    @staticmethod
    def _exists(conn: Connection, project_id: str) -> bool:
        return conn.execute(
            text("SELECT 1 FROM projects WHERE id = :id"), {"id": project_id}
        ).first() is not None

    @staticmethod
    def _load_members(conn: Connection, project_id: str) -> List[ProjectMember]:
        rows = conn.execute(
            text(f"SELECT {MEMBER_COLS} FROM project_members WHERE project_id = :pid ORDER BY position"),
            {"pid": project_id},
        ).mappings().all()
        return [_row_to_member(r) for r in rows]

    @staticmethod
    def _replace_members(conn: Connection, project: Project) -> None:
        conn.execute(
            text("DELETE FROM project_members WHERE project_id = :pid"), {"pid": project.id}
        )
        for position, member in enumerate(project.project_members):
            conn.execute(
                text(f"""
                    INSERT INTO project_members ({MEMBER_COLS}, position)
                    VALUES (:id, :project_id, :user_id, :user_name, :function_id,
                            :function_name, :is_admin, :position)
                """),
                {"id": member.id, "project_id": project.id, "user_id": member.user_id,
                 "user_name": member.user_name, "function_id": member.function_id,
                 "function_name": member.function_name, "is_admin": member.is_admin,
                 "position": position},
            )
