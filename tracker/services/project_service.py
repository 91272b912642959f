# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Project aggregate: the consistency boundary for a project.

Every write goes through ``save``: members are normalized against the
function registry and the user directory, all invariants are checked in one
pass, then the project row, its members and the audit events are written in
a single transaction.
"""

import threading
from datetime import datetime
from typing import Any, Mapping, Optional

from tracker.core.config import settings
from tracker.core.exceptions import ConfigurationError, MissingActorError, RecordInvalid
from tracker.core.logging import get_logger
from tracker.metrics import (
    ACTIVE_PROJECTS,
    EVENTS_RECORDED,
    MEMBERSHIP_CHANGES,
    PROJECTS_CREATED,
    PROJECTS_DESTROYED,
    REASSIGNMENTS_REJECTED,
    TAG_RECOMPUTES,
    TICKETS_ISSUED,
    VALIDATION_FAILURES,
)
from tracker.models.domain import Event, Project, ProjectMember, ReassignResult, User, new_id
from tracker.repositories.event_repository import EventRepository
from tracker.repositories.project_repository import ProjectRepository
from tracker.repositories.ticket_repository import TicketRepository
from tracker.repositories.user_repository import UserRepository
from tracker.services import membership
from tracker.services.event_recorder import EventRecorder
from tracker.services.function_registry import FunctionRegistry
from tracker.services.tags import count_tags

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "description")

REASON_UNKNOWN_IDS = "unknown member or function"
REASON_NO_ADMIN = "no admin function in assignment"
REASON_INVALID = "validation failed"


class ProjectService:
    """Business logic for the project aggregate."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        registry: FunctionRegistry,
        user_repo: UserRepository,
        ticket_repo: TicketRepository,
        event_repo: EventRepository,
        recorder: Optional[EventRecorder] = None,
    ) -> None:
        self._projects = project_repo
        self._registry = registry
        self._users = user_repo
        self._tickets = ticket_repo
        self._events = event_repo
        self._recorder = recorder or EventRecorder()
        self._counter_locks: dict[str, threading.Lock] = {}
        self._counter_locks_guard = threading.Lock()

    def seed_gauges(self) -> None:
        ACTIVE_PROJECTS.set(self._projects.count())

    # ── Lifecycle ──

    def new_with_admin_member(self, attributes: Mapping[str, Any], founding_user: User) -> Project:
        """Unsaved project whose only member is ``founding_user`` with the default admin function."""
        admin_function = self._registry.default_admin()
        if admin_function is None:
            raise ConfigurationError("No admin function is defined in the function registry")
        project = Project(
            name=attributes.get("name"),
            description=attributes.get("description"),
        )
        membership.add_member(project, founding_user, admin_function)
        project.actor_on_create = founding_user
        return project

    def create(self, attributes: Mapping[str, Any], founding_user: Optional[User]) -> Project:
        if founding_user is None:
            raise MissingActorError("Cannot create a project without a founding user")
        project = self.new_with_admin_member(attributes, founding_user)
        self.save(project)

        PROJECTS_CREATED.inc()
        ACTIVE_PROJECTS.set(self._projects.count())
        logger.info("Project created id=%s name=%s founder=%s",
                    project.id, project.name, founding_user.login)
        return project

    def save(self, project: Project) -> Project:
        """Normalize, validate, then persist project + members + events atomically."""
        is_new = project.is_new
        unknown_users, unknown_functions = self._normalize_members(project)
        errors = membership.collect_errors(
            project,
            name_taken=self._projects.name_taken(project.name, exclude_id=project.id),
            unknown_users=unknown_users,
            unknown_functions=unknown_functions,
        )
        if errors:
            for field in errors:
                VALIDATION_FAILURES.labels(field=field).inc()
            logger.warning("Project save rejected id=%s errors=%s", project.id, errors)
            raise RecordInvalid(errors)

        if is_new:
            project.id = new_id()
        try:
            events = self._recorder.events_for_save(project, is_new)
            self._projects.save(project, events)
        except Exception:
            if is_new:
                project.id = None
            raise
        finally:
            # Actors attribute one write attempt only.
            project.actor_on_create = None
            project.actor_on_update = None

        for event in events:
            EVENTS_RECORDED.labels(event_type=event.event_type).inc()
        return project

    def update(self, project_id: str, changes: Mapping[str, Any],
               actor: Optional[User] = None) -> Project:
        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValueError(f"Fields cannot be updated: {unknown}")
        project = self.get_project(project_id)
        for field, value in changes.items():
            setattr(project, field, value)
        project.actor_on_update = actor
        self.save(project)
        logger.info("Project updated id=%s fields=%s", project_id, sorted(changes))
        return project

    def destroy(self, project_id: str) -> dict[str, Any]:
        removed = self._projects.delete(project_id)
        with self._counter_locks_guard:
            self._counter_locks.pop(project_id, None)
        PROJECTS_DESTROYED.inc()
        ACTIVE_PROJECTS.set(self._projects.count())
        logger.info("Project destroyed id=%s", project_id)
        return {"status": "deleted", "project_id": project_id, "removed": removed}

    # ── Membership ──

    def add_member(self, project_id: str, user_id: str, function_id: str,
                   actor: Optional[User] = None) -> Project:
        """Add ``user_id`` with ``function_id``; a no-op when the user is already a member."""
        with self._registry.exclusive():
            project = self.get_project(project_id)
            user = self._users.get(user_id)
            if user is None:
                raise KeyError(f"User {user_id} not found")
            function = self._registry.get_function(function_id)
            if not membership.add_member(project, user, function):
                logger.info("Member already present project=%s user=%s", project_id, user.login)
                return project
            project.actor_on_update = actor
            self.save(project)
        MEMBERSHIP_CHANGES.labels(operation="add").inc()
        logger.info("Member added project=%s user=%s function=%s",
                    project_id, user.login, function.name)
        return project

    def remove_member(self, project_id: str, member_id: str,
                      actor: Optional[User] = None) -> Project:
        with self._registry.exclusive():
            project = self.get_project(project_id)
            removed = membership.remove_member(project, member_id)
            project.actor_on_update = actor
            self.save(project)
        MEMBERSHIP_CHANGES.labels(operation="remove").inc()
        logger.info("Member removed project=%s user=%s", project_id, removed.user_name)
        return project

    def reassign_functions(self, project_id: str, assignments: Mapping[str, str],
                           actor: Optional[User] = None) -> ReassignResult:
        """
        Apply {member_id: function_id} as one unit. The admin-function check is
        a fast precondition; the save-time invariant still rejects a batch that
        leaves the project without an admin member.
        """
        with self._registry.exclusive():
            project = self.get_project(project_id)
            invalid_members = [mid for mid in assignments if project.member(mid) is None]
            functions = self._registry.functions_by_ids(assignments.values())
            invalid_functions = sorted({fid for fid in assignments.values() if fid not in functions})
            if invalid_members or invalid_functions:
                return self._reject(project_id, REASON_UNKNOWN_IDS,
                                    invalid_member_ids=invalid_members,
                                    invalid_function_ids=invalid_functions)
            if not any(functions[fid].is_admin for fid in assignments.values()):
                return self._reject(project_id, REASON_NO_ADMIN)

            membership.apply_assignments(project, assignments)
            project.actor_on_update = actor
            try:
                self.save(project)
            except RecordInvalid as exc:
                return self._reject(project_id, REASON_INVALID, errors=exc.errors)

        MEMBERSHIP_CHANGES.labels(operation="reassign").inc()
        logger.info("Functions reassigned project=%s members=%d", project_id, len(assignments))
        return ReassignResult(success=True)

    # ── Tickets & tags ──

    def next_ticket_number(self, project_id: str) -> int:
        """
        Issue the project's next ticket number. Issuers for one project are
        serialized here as well as by the row lock: an in-memory SQLite engine
        shares a single connection between threads.
        """
        with self._counter_lock(project_id):
            number = self._projects.issue_ticket_number(project_id)
        TICKETS_ISSUED.inc()
        return number

    def recompute_tag_counts(self, project_id: str) -> dict[str, int]:
        """Full recompute from every ticket; safe to call after any tag change."""
        tag_counts = count_tags(self._tickets.tag_lists_for_project(project_id))
        self._projects.write_tag_counts(project_id, tag_counts)
        TAG_RECOMPUTES.inc()
        return tag_counts

    # ── Queries ──

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise KeyError(f"Project {project_id} not found")
        return project

    def find_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def list_projects(self) -> list[Project]:
        return self._projects.list_all()

    def membership_of(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        return membership.membership_of(self.get_project(project_id), user_id)

    def list_events(self, project_id: str, event_type: Optional[str] = None,
                    limit: Optional[int] = None) -> list[Event]:
        self.get_project(project_id)
        effective_limit = min(limit or settings.DEFAULT_EVENT_LIMIT, settings.MAX_EVENT_LIMIT)
        return self._events.list_for_project(project_id, event_type, effective_limit)

    def last_activity_at(self, project_id: str) -> datetime:
        """Time of the latest event, or the project's creation time when it has none."""
        project = self.get_project(project_id)
        latest = self._events.latest_for_project(project_id)
        return latest.created_at if latest else project.created_at

    # ── Internal ──

    def _counter_lock(self, project_id: str) -> threading.Lock:
        with self._counter_locks_guard:
            return self._counter_locks.setdefault(project_id, threading.Lock())

    def _normalize_members(self, project: Project) -> tuple[set[str], set[str]]:
        """Refresh denormalized member fields; return ids that could not be resolved."""
        members = project.project_members
        functions = self._registry.functions_by_ids(m.function_id for m in members)
        users = self._users.get_many(m.user_id for m in members)
        unknown_users = {m.user_id for m in members if m.user_id not in users}
        unknown_functions = {m.function_id for m in members if m.function_id not in functions}
        project.project_members = [
            membership.normalize_member(m, functions[m.function_id], users[m.user_id])
            if m.function_id in functions and m.user_id in users
            else m
            for m in members
        ]
        return unknown_users, unknown_functions

    def _reject(self, project_id: str, reason: str, **details: Any) -> ReassignResult:
        REASSIGNMENTS_REJECTED.labels(reason=reason).inc()
        logger.warning("Function reassignment rejected project=%s reason=%s details=%s",
                       project_id, reason, details)
        return ReassignResult(success=False, reason=reason, **details)
