# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for tickets."""
import json
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import Ticket

TICKET_COLS = (
    "id, project_id, milestone_id, number, title, description, tags, created_at, updated_at"
)


def _row_to_ticket(row) -> Ticket:
    return Ticket(
        id=row["id"],
        project_id=row["project_id"],
        milestone_id=row["milestone_id"],
        number=row["number"],
        title=row["title"],
        description=row["description"],
        tags=json.loads(row["tags"] or "[]"),
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
    )


class TicketRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create(self, ticket: Ticket) -> Ticket:
        now = utcnow()
        ticket.created_at = now
        ticket.updated_at = now
        with self._engine.begin() as conn:
            conn.execute(
                text(f"""
                    INSERT INTO tickets ({TICKET_COLS})
                    VALUES (:id, :project_id, :milestone_id, :number, :title,
                            :description, :tags, :ts, :ts)
                """),
                {"id": ticket.id, "project_id": ticket.project_id,
                 "milestone_id": ticket.milestone_id, "number": ticket.number,
                 "title": ticket.title, "description": ticket.description,
                 "tags": json.dumps(ticket.tags), "ts": to_db(now)},
            )
        return ticket

    def update(self, ticket: Ticket) -> Ticket:
        ticket.updated_at = utcnow()
        with self._engine.begin() as conn:
            result = conn.execute(
                text("""
                    UPDATE tickets
                       SET title = :title, description = :description,
                           milestone_id = :milestone_id, tags = :tags, updated_at = :ts
                     WHERE id = :id
                """),
                {"id": ticket.id, "title": ticket.title, "description": ticket.description,
                 "milestone_id": ticket.milestone_id, "tags": json.dumps(ticket.tags),
                 "ts": to_db(ticket.updated_at)},
            )
            if result.rowcount == 0:
                raise KeyError(f"Ticket {ticket.id} not found")
        return ticket

    def delete(self, ticket_id: str) -> None:
        with self._engine.begin() as conn:
            deleted = conn.execute(
                text("DELETE FROM tickets WHERE id = :id"), {"id": ticket_id}
            ).rowcount
        if deleted == 0:
            raise KeyError(f"Ticket {ticket_id} not found")

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, ticket_id: str) -> Optional[Ticket]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {TICKET_COLS} FROM tickets WHERE id = :id"), {"id": ticket_id}
            ).mappings().first()
        return _row_to_ticket(row) if row else None

    def list_for_project(self, project_id: str, milestone_id: Optional[str] = None) -> List[Ticket]:
        params = {"pid": project_id}
        where = "project_id = :pid"
        if milestone_id:
            where += " AND milestone_id = :mid"
            params["mid"] = milestone_id
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {TICKET_COLS} FROM tickets WHERE {where} ORDER BY number"),
                params,
            ).mappings().all()
        return [_row_to_ticket(r) for r in rows]

    def tag_lists_for_project(self, project_id: str) -> List[List[str]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT tags FROM tickets WHERE project_id = :pid"), {"pid": project_id}
            ).fetchall()
        return [json.loads(r[0] or "[]") for r in rows]

    def tag_lists_for_milestone(self, milestone_id: str) -> List[List[str]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT tags FROM tickets WHERE milestone_id = :mid"), {"mid": milestone_id}
            ).fetchall()
        return [json.loads(r[0] or "[]") for r in rows]
