# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pydantic data classes with no web-framework dependency.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

EVENT_CREATED = "created"
EVENT_UPDATED = "updated"


def new_id() -> str:
    return str(uuid.uuid4())


class User(BaseModel):
    """A person who can be a member of projects."""
    id: str = Field(default_factory=new_id)
    login: str
    global_admin: bool = False
    created_at: Optional[datetime] = None


class Function(BaseModel):
    """A named role; ``is_admin`` grants project-admin rights to its holders."""
    id: str = Field(default_factory=new_id)
    name: str
    is_admin: bool = False
    created_at: Optional[datetime] = None


class ProjectMember(BaseModel):
    """One (user, function) pair embedded in a project."""
    id: str = Field(default_factory=new_id)
    user_id: str
    user_name: str = ""
    function_id: str
    function_name: str = ""
    is_admin: bool = False


class Project(BaseModel):
    """
    Aggregate root. ``id`` stays None until the first save.
    ``actor_on_create`` / ``actor_on_update`` are transient: consumed by the
    event recorder on save and never persisted.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    num_ticket: Optional[int] = None
    tag_counts: dict[str, int] = Field(default_factory=dict)
    lock_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    project_members: list[ProjectMember] = Field(default_factory=list)

    actor_on_create: Optional[User] = Field(default=None, exclude=True)
    actor_on_update: Optional[User] = Field(default=None, exclude=True)

    @property
    def title(self) -> Optional[str]:
        return self.name

    @property
    def is_new(self) -> bool:
        return self.id is None

    def member(self, member_id: str) -> Optional[ProjectMember]:
        return next((m for m in self.project_members if m.id == member_id), None)

    def has_admin(self) -> bool:
        return any(m.is_admin for m in self.project_members)


class Milestone(BaseModel):
    id: str = Field(default_factory=new_id)
    project_id: str
    name: str
    description: Optional[str] = None
    expected_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Ticket(BaseModel):
    id: str = Field(default_factory=new_id)
    project_id: str
    milestone_id: Optional[str] = None
    number: int
    title: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Event(BaseModel):
    """Immutable audit record of a project lifecycle change."""
    id: str = Field(default_factory=new_id)
    project_id: str
    eventable_type: str = "project"
    eventable_id: str
    user_id: Optional[str] = None
    event_type: Literal["created", "updated"]
    created_at: Optional[datetime] = None


class MilestoneBuckets(BaseModel):
    current: Optional[Milestone] = None
    outdated: list[Milestone] = Field(default_factory=list)
    upcoming: list[Milestone] = Field(default_factory=list)
    no_date: list[Milestone] = Field(default_factory=list)


class ReassignResult(BaseModel):
    """Outcome of a bulk function reassignment."""
    success: bool
    reason: Optional[str] = None
    invalid_member_ids: list[str] = Field(default_factory=list)
    invalid_function_ids: list[str] = Field(default_factory=list)
    errors: dict[str, list[str]] = Field(default_factory=dict)
