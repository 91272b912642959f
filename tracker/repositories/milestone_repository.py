# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for project milestones."""
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from tracker.core.timeutils import from_db, to_db, utcnow
from tracker.models.domain import Milestone

MILESTONE_COLS = "id, project_id, name, description, expected_at, created_at"


def _row_to_milestone(row) -> Milestone:
    return Milestone(
        id=row["id"],
        project_id=row["project_id"],
        name=row["name"],
        description=row["description"],
        expected_at=from_db(row["expected_at"]),
        created_at=from_db(row["created_at"]),
    )


class MilestoneRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create(self, milestone: Milestone) -> Milestone:
        milestone.created_at = milestone.created_at or utcnow()
        with self._engine.begin() as conn:
            conn.execute(
                text(f"""
                    INSERT INTO milestones ({MILESTONE_COLS})
                    VALUES (:id, :project_id, :name, :description, :expected_at, :created_at)
                """),
                {"id": milestone.id, "project_id": milestone.project_id,
                 "name": milestone.name, "description": milestone.description,
                 "expected_at": to_db(milestone.expected_at),
                 "created_at": to_db(milestone.created_at)},
            )
        return milestone

    def delete(self, milestone_id: str) -> int:
        """Delete a milestone, detaching its tickets. Returns detached ticket count."""
        with self._engine.begin() as conn:
            detached = conn.execute(
                text("UPDATE tickets SET milestone_id = NULL WHERE milestone_id = :mid"),
                {"mid": milestone_id},
            ).rowcount
            deleted = conn.execute(
                text("DELETE FROM milestones WHERE id = :mid"), {"mid": milestone_id}
            ).rowcount
            if deleted == 0:
                raise KeyError(f"Milestone {milestone_id} not found")
        return detached

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, milestone_id: str) -> Optional[Milestone]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {MILESTONE_COLS} FROM milestones WHERE id = :id"),
                {"id": milestone_id},
            ).mappings().first()
        return _row_to_milestone(row) if row else None

    def list_for_project(self, project_id: str) -> List[Milestone]:
        """Stored order: creation order."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {MILESTONE_COLS} FROM milestones WHERE project_id = :pid "
                     "ORDER BY created_at, id"),
                {"pid": project_id},
            ).mappings().all()
        return [_row_to_milestone(r) for r in rows]
