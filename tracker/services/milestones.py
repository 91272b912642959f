# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Milestone classification and milestone management.
``classify_milestones`` is pure; ``MilestoneService`` wraps the repository.
"""

from datetime import datetime
from typing import Optional, Sequence

from tracker.core.logging import get_logger
from tracker.core.timeutils import as_utc, utcnow
from tracker.models.domain import Milestone, MilestoneBuckets
from tracker.repositories.milestone_repository import MilestoneRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.ticket_repository import TicketRepository
from tracker.services.tags import count_tags

logger = get_logger(__name__)


def current_milestone(milestones: Sequence[Milestone], now: datetime) -> Optional[Milestone]:
    """
    Nearest milestone strictly after ``now`` (stored order breaks ties),
    else the first stored milestone, else None.
    """
    future = [m for m in milestones if m.expected_at and as_utc(m.expected_at) > now]
    if future:
        return min(future, key=lambda m: as_utc(m.expected_at))
    return milestones[0] if milestones else None


def classify_milestones(milestones: Sequence[Milestone], now: Optional[datetime] = None) -> MilestoneBuckets:
    """Partition into current / outdated / upcoming / no-date around ``now``."""
    now = as_utc(now) if now else utcnow()
    current = current_milestone(milestones, now)
    others = [m for m in milestones if current is None or m.id != current.id]

    outdated = sorted(
        (m for m in others if m.expected_at and as_utc(m.expected_at) < now),
        key=lambda m: as_utc(m.expected_at),
        reverse=True,
    )
    upcoming = sorted(
        (m for m in others if m.expected_at and as_utc(m.expected_at) > now),
        key=lambda m: as_utc(m.expected_at),
    )
    no_date = [m for m in others if m.expected_at is None]
    return MilestoneBuckets(current=current, outdated=outdated, upcoming=upcoming, no_date=no_date)


class MilestoneService:
    """Milestone CRUD plus classification for one project at a time."""

    def __init__(
        self,
        milestone_repo: MilestoneRepository,
        project_repo: ProjectRepository,
        ticket_repo: TicketRepository,
    ) -> None:
        self._milestones = milestone_repo
        self._projects = project_repo
        self._tickets = ticket_repo

    def create_milestone(self, project_id: str, name: str,
                         expected_at: Optional[datetime] = None,
                         description: Optional[str] = None) -> Milestone:
        if self._projects.get(project_id) is None:
            raise KeyError(f"Project {project_id} not found")
        if not name or not name.strip():
            raise ValueError("Milestone name cannot be empty")
        milestone = self._milestones.create(Milestone(
            project_id=project_id,
            name=name.strip(),
            description=description,
            expected_at=as_utc(expected_at) if expected_at else None,
        ))
        logger.info("Milestone created id=%s project=%s", milestone.id, project_id)
        return milestone

    def get_milestone(self, milestone_id: str) -> Milestone:
        milestone = self._milestones.get(milestone_id)
        if milestone is None:
            raise KeyError(f"Milestone {milestone_id} not found")
        return milestone

    def list_milestones(self, project_id: str) -> list[Milestone]:
        return self._milestones.list_for_project(project_id)

    def classify(self, project_id: str, now: Optional[datetime] = None) -> MilestoneBuckets:
        if self._projects.get(project_id) is None:
            raise KeyError(f"Project {project_id} not found")
        return classify_milestones(self._milestones.list_for_project(project_id), now)

    def delete_milestone(self, milestone_id: str) -> dict[str, object]:
        detached = self._milestones.delete(milestone_id)
        logger.info("Milestone deleted id=%s detached_tickets=%d", milestone_id, detached)
        return {"status": "deleted", "milestone_id": milestone_id, "detached_tickets": detached}

    def milestone_tag_counts(self, milestone_id: str) -> dict[str, int]:
        self.get_milestone(milestone_id)
        return count_tags(self._tickets.tag_lists_for_milestone(milestone_id))
