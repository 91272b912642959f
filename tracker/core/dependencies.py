# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire repositories and services, resolve the
calling user and the admin checks that guard mutating routes.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.engine import Engine

from tracker.core.database import engine
from tracker.models.domain import User
from tracker.repositories import (
    EventRepository,
    FunctionRepository,
    MilestoneRepository,
    ProjectRepository,
    TicketRepository,
    UserRepository,
)
from tracker.services.function_registry import FunctionRegistry
from tracker.services.milestones import MilestoneService
from tracker.services.project_service import ProjectService
from tracker.services.ticket_service import TicketService
from tracker.services.user_service import UserService


class ServiceContainer:
    """Every repository and service bound to one engine."""

    def __init__(self, target: Engine) -> None:
        self.engine = target
        # ── Repositories ──
        self.user_repo = UserRepository(target)
        self.function_repo = FunctionRepository(target)
        self.project_repo = ProjectRepository(target)
        self.milestone_repo = MilestoneRepository(target)
        self.ticket_repo = TicketRepository(target)
        self.event_repo = EventRepository(target)
        # ── Services (with injected dependencies) ──
        self.user_service = UserService(self.user_repo)
        self.registry = FunctionRegistry(self.function_repo)
        self.project_service = ProjectService(
            project_repo=self.project_repo,
            registry=self.registry,
            user_repo=self.user_repo,
            ticket_repo=self.ticket_repo,
            event_repo=self.event_repo,
        )
        self.milestone_service = MilestoneService(
            milestone_repo=self.milestone_repo,
            project_repo=self.project_repo,
            ticket_repo=self.ticket_repo,
        )
        self.ticket_service = TicketService(
            ticket_repo=self.ticket_repo,
            milestone_repo=self.milestone_repo,
            project_service=self.project_service,
        )


_container = ServiceContainer(engine)


# ── FastAPI dependency functions ──
def get_container() -> ServiceContainer:
    return _container


def get_user_service(container: ServiceContainer = Depends(get_container)) -> UserService:
    return container.user_service


def get_function_registry(container: ServiceContainer = Depends(get_container)) -> FunctionRegistry:
    return container.registry


def get_project_service(container: ServiceContainer = Depends(get_container)) -> ProjectService:
    return container.project_service


def get_milestone_service(container: ServiceContainer = Depends(get_container)) -> MilestoneService:
    return container.milestone_service


def get_ticket_service(container: ServiceContainer = Depends(get_container)) -> TicketService:
    return container.ticket_service


# ── Caller identity & authorization ──
def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    users: UserService = Depends(get_user_service),
) -> User:
    """Resolve the caller from the ``X-User-ID`` header."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")
    user = users.find_user(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def require_global_admin(user: User = Depends(get_current_user)) -> User:
    if not user.global_admin:
        raise HTTPException(status_code=403, detail="Global admin rights required")
    return user


def is_project_admin(user: User, project_id: str, projects: ProjectService) -> bool:
    """Global admins, or members holding an admin-flagged function."""
    if user.global_admin:
        return True
    member = projects.membership_of(project_id, user.id)
    return member is not None and member.is_admin


def require_project_admin(
    project_id: str,
    user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_project_service),
) -> User:
    try:
        allowed = is_project_admin(user, project_id, projects)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not allowed:
        raise HTTPException(status_code=403, detail="Project admin rights required")
    return user


def require_project_member(
    project_id: str,
    user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_project_service),
) -> User:
    try:
        member = projects.membership_of(project_id, user.id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if member is None and not user.global_admin:
        raise HTTPException(status_code=403, detail="Project membership required")
    return user
