# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / response schemas, used only at the controller (HTTP) boundary.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from tracker.models.domain import Event, Milestone, Project, ProjectMember, Ticket


# ── Users ──

class UserCreate(BaseModel):
    login: str = Field(..., min_length=1, max_length=255)
    global_admin: bool = False


class UserOut(BaseModel):
    id: str
    login: str
    global_admin: bool
    created_at: Optional[datetime] = None


# ── Functions ──

class FunctionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    is_admin: bool = False


class FunctionOut(BaseModel):
    id: str
    name: str
    is_admin: bool
    created_at: Optional[datetime] = None


class AdminFlagsUpdate(BaseModel):
    """Full replacement: exactly these functions end up admin-flagged."""
    admin_function_ids: List[str] = Field(default_factory=list)


# ── Projects ──

class ProjectCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=5000)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ProjectOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    num_ticket: Optional[int] = None
    tag_counts: Dict[str, int] = Field(default_factory=dict)
    lock_version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    project_members: List[ProjectMember] = Field(default_factory=list)

    @classmethod
    def from_project(cls, project: Project) -> "ProjectOut":
        return cls(**project.model_dump())


class MemberAdd(BaseModel):
    user_id: str = Field(..., min_length=1)
    function_id: Optional[str] = Field(
        default=None, description="Defaults to the first non-admin function"
    )


class FunctionAssignments(BaseModel):
    """``{member_id: function_id}`` applied as one unit."""
    assignments: Dict[str, str]


class ActivityOut(BaseModel):
    project_id: str
    last_activity_at: Optional[datetime] = None


class EventsOut(BaseModel):
    project_id: str
    count: int
    events: List[Event]


# ── Milestones ──

class MilestoneCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    expected_at: Optional[datetime] = None


class MilestonesOut(BaseModel):
    current: Optional[Milestone] = None
    outdated: List[Milestone] = Field(default_factory=list)
    upcoming: List[Milestone] = Field(default_factory=list)
    no_date: List[Milestone] = Field(default_factory=list)


# ── Tickets ──

class TicketCreate(BaseModel):
    title: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    tags: List[str] = Field(default_factory=list)
    milestone_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.split(",")
        return v


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    tags: Optional[List[str]] = None
    milestone_id: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.split(",")
        return v

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class TicketsOut(BaseModel):
    project_id: str
    count: int
    tickets: List[Ticket]
