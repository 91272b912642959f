# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: project audit events.
Append-only; events are written inside the project save transaction.
"""
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import Event

EVENT_COLS = "id, project_id, eventable_type, eventable_id, user_id, event_type, created_at"


def _row_to_event(row) -> Event:
    return Event(
        id=row["id"],
        project_id=row["project_id"],
        eventable_type=row["eventable_type"],
        eventable_id=row["eventable_id"],
        user_id=row["user_id"],
        event_type=row["event_type"],
        created_at=from_db(row["created_at"]),
    )


def insert_event(conn: Connection, event: Event) -> Event:
    event.created_at = event.created_at or utcnow()
    conn.execute(
        text(f"""
            INSERT INTO events ({EVENT_COLS})
            VALUES (:id, :project_id, :eventable_type, :eventable_id, :user_id, :event_type, :created_at)
        """),
        {"id": event.id, "project_id": event.project_id,
         "eventable_type": event.eventable_type, "eventable_id": event.eventable_id,
         "user_id": event.user_id, "event_type": event.event_type,
         "created_at": to_db(event.created_at)},
    )
    return event


class EventRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def list_for_project(self, project_id: str, event_type: Optional[str] = None,
                         limit: int = 100) -> List[Event]:
        """Most recent first."""
        params = {"pid": project_id, "limit": limit}
        where = "project_id = :pid"
        if event_type:
            where += " AND event_type = :etype"
            params["etype"] = event_type
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {EVENT_COLS} FROM events WHERE {where} "
                     "ORDER BY created_at DESC, id DESC LIMIT :limit"),
                params,
            ).mappings().all()
        return [_row_to_event(r) for r in rows]

    def latest_for_project(self, project_id: str) -> Optional[Event]:
        events = self.list_for_project(project_id, limit=1)
        return events[0] if events else None

    def count_for_project(self, project_id: str) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM events WHERE project_id = :pid"), {"pid": project_id}
            ).scalar() or 0

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM events")).scalar() or 0
