# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: tickets. Numbering and tag statistics are handled by the service;
only project members (or global admins) may touch a project's tickets.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from tracker.core.dependencies import (
    get_current_user,
    get_project_service,
    get_ticket_service,
    require_project_member,
)
from tracker.models.domain import Ticket, User
from tracker.schemas import TicketCreate, TicketsOut, TicketUpdate
from tracker.services.project_service import ProjectService
from tracker.services.ticket_service import TicketService

router = APIRouter(prefix="/api/v1", tags=["Tickets"])


def _check_member(user: User, project_id: str, projects: ProjectService) -> None:
    if user.global_admin:
        return
    if projects.membership_of(project_id, user.id) is None:
        raise HTTPException(status_code=403, detail="Project membership required")


@router.post("/projects/{project_id}/tickets", status_code=201, response_model=Ticket)
def create_ticket(
    project_id: str,
    payload: TicketCreate,
    _user: User = Depends(require_project_member),
    service: TicketService = Depends(get_ticket_service),
):
    try:
        return service.create_ticket(
            project_id,
            title=payload.title,
            description=payload.description,
            tags=payload.tags,
            milestone_id=payload.milestone_id,
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/projects/{project_id}/tickets", response_model=TicketsOut)
def list_tickets(
    project_id: str,
    milestone_id: Optional[str] = None,
    _user: User = Depends(require_project_member),
    service: TicketService = Depends(get_ticket_service),
):
    try:
        tickets = service.list_tickets(project_id, milestone_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TicketsOut(project_id=project_id, count=len(tickets), tickets=tickets)


@router.patch("/tickets/{ticket_id}", response_model=Ticket)
def update_ticket(
    ticket_id: str,
    payload: TicketUpdate,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    projects: ProjectService = Depends(get_project_service),
):
    try:
        _check_member(user, service.get_ticket(ticket_id).project_id, projects)
        return service.update_ticket(ticket_id, payload.changes())
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/tickets/{ticket_id}")
def delete_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    projects: ProjectService = Depends(get_project_service),
):
    try:
        _check_member(user, service.get_ticket(ticket_id).project_id, projects)
        return service.delete_ticket(ticket_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
