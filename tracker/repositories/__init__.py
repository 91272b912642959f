# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package: re-exports every repository."""
from tracker.repositories.event_repository import EventRepository
from tracker.repositories.function_repository import FunctionRepository
from tracker.repositories.milestone_repository import MilestoneRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.ticket_repository import TicketRepository
from tracker.repositories.user_repository import UserRepository

__all__ = [
    "EventRepository",
    "FunctionRepository",
    "MilestoneRepository",
    "ProjectRepository",
    "TicketRepository",
    "UserRepository",
]
