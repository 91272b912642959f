# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Tickets. Numbers come from the project's counter, and every tag
change is followed by a full recompute of the project's tag counts.
"""

from typing import Any, Iterable, Mapping, Optional

from tracker.core.logging import get_logger
from tracker.models.domain import Ticket
from tracker.repositories.milestone_repository import MilestoneRepository
from tracker.repositories.ticket_repository import TicketRepository
from tracker.services.project_service import ProjectService
from tracker.services.tags import normalize_tags

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("title", "description", "tags", "milestone_id")


class TicketService:
    """Business logic for tickets."""

    def __init__(
        self,
        ticket_repo: TicketRepository,
        milestone_repo: MilestoneRepository,
        project_service: ProjectService,
    ) -> None:
        self._tickets = ticket_repo
        self._milestones = milestone_repo
        self._projects = project_service

    def create_ticket(
        self,
        project_id: str,
        title: str,
        description: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        milestone_id: Optional[str] = None,
    ) -> Ticket:
        if not title or not title.strip():
            raise ValueError("Ticket title cannot be empty")
        self._projects.get_project(project_id)
        if milestone_id:
            self._check_milestone(project_id, milestone_id)

        number = self._projects.next_ticket_number(project_id)
        ticket = self._tickets.create(Ticket(
            project_id=project_id,
            milestone_id=milestone_id,
            number=number,
            title=title.strip(),
            description=description,
            tags=normalize_tags(tags or []),
        ))
        if ticket.tags:
            self._projects.recompute_tag_counts(project_id)
        logger.info("Ticket created id=%s project=%s number=%d", ticket.id, project_id, number)
        return ticket

    def update_ticket(self, ticket_id: str, changes: Mapping[str, Any]) -> Ticket:
        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValueError(f"Fields cannot be updated: {unknown}")
        ticket = self.get_ticket(ticket_id)
        previous_tags = list(ticket.tags)

        if "title" in changes:
            title = changes["title"]
            if not title or not title.strip():
                raise ValueError("Ticket title cannot be empty")
            ticket.title = title.strip()
        if "description" in changes:
            ticket.description = changes["description"]
        if "milestone_id" in changes:
            if changes["milestone_id"]:
                self._check_milestone(ticket.project_id, changes["milestone_id"])
            ticket.milestone_id = changes["milestone_id"]
        if "tags" in changes:
            ticket.tags = normalize_tags(changes["tags"] or [])

        self._tickets.update(ticket)
        if ticket.tags != previous_tags:
            self._projects.recompute_tag_counts(ticket.project_id)
        logger.info("Ticket updated id=%s fields=%s", ticket_id, sorted(changes))
        return ticket

    def delete_ticket(self, ticket_id: str) -> dict[str, str]:
        ticket = self.get_ticket(ticket_id)
        self._tickets.delete(ticket_id)
        if ticket.tags:
            self._projects.recompute_tag_counts(ticket.project_id)
        logger.info("Ticket deleted id=%s project=%s", ticket_id, ticket.project_id)
        return {"status": "deleted", "ticket_id": ticket_id}

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise KeyError(f"Ticket {ticket_id} not found")
        return ticket

    def list_tickets(self, project_id: str, milestone_id: Optional[str] = None) -> list[Ticket]:
        self._projects.get_project(project_id)
        return self._tickets.list_for_project(project_id, milestone_id)

    def _check_milestone(self, project_id: str, milestone_id: str) -> None:
        milestone = self._milestones.get(milestone_id)
        if milestone is None:
            raise KeyError(f"Milestone {milestone_id} not found")
        if milestone.project_id != project_id:
            raise ValueError(f"Milestone {milestone_id} belongs to another project")
