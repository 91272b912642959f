# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Audit events for project create/update.
Builds the events; the project repository writes them inside the save
transaction so a rejected save leaves no event behind.
"""

from tracker.core.exceptions import MissingActorError
from tracker.models.domain import EVENT_CREATED, EVENT_UPDATED, Event, Project


class EventRecorder:

    def events_for_save(self, project: Project, is_new: bool) -> list[Event]:
        if is_new:
            return [self.created_event(project)]
        event = self.updated_event(project)
        return [event] if event else []

    def created_event(self, project: Project) -> Event:
        actor = project.actor_on_create
        if actor is None:
            raise MissingActorError("A founding user must be set before creating a project")
        return Event(
            project_id=project.id,
            eventable_id=project.id,
            user_id=actor.id,
            event_type=EVENT_CREATED,
        )

    def updated_event(self, project: Project):
        actor = project.actor_on_update
        if actor is None:
            return None
        return Event(
            project_id=project.id,
            eventable_id=project.id,
            user_id=actor.id,
            event_type=EVENT_UPDATED,
        )
