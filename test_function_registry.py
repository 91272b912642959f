# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the global function registry and audit event construction.
"""

import threading

import pytest

from tracker.core.exceptions import MissingActorError, RecordInvalid
from tracker.models.domain import Project, User
from tracker.services.event_recorder import EventRecorder


class TestSeeding:
    def test_defaults_seeded(self, registry):
        functions = registry.list_functions()
        assert [(f.name, f.is_admin) for f in functions] == [("Admin", True), ("Member", False)]

    def test_seed_is_noop_on_populated_registry(self, registry):
        registry.seed_defaults()
        assert len(registry.list_functions()) == 2

    def test_default_lookups(self, registry):
        assert registry.default_admin().name == "Admin"
        assert registry.default_non_admin().name == "Member"


class TestCreateFunction:
    def test_create(self, registry):
        function = registry.create_function("Reviewer")
        assert function.is_admin is False
        assert registry.get_function(function.id).name == "Reviewer"

    def test_blank_name(self, registry):
        with pytest.raises(RecordInvalid) as exc:
            registry.create_function("  ")
        assert exc.value.errors == {"name": ["can't be blank"]}

    def test_duplicate_name(self, registry):
        with pytest.raises(RecordInvalid) as exc:
            registry.create_function("Admin")
        assert exc.value.errors == {"name": ["has already been taken"]}

    def test_get_missing(self, registry):
        with pytest.raises(KeyError):
            registry.get_function("missing")

    def test_functions_by_ids_skips_unknown(self, registry, admin_function):
        found = registry.functions_by_ids([admin_function.id, "missing"])
        assert list(found) == [admin_function.id]


class TestAdminFlags:
    def test_rewrite_is_exclusive(self, registry, admin_function, member_function):
        lead = registry.create_function("Lead", is_admin=True)
        functions = registry.set_admin_flags([member_function.id])
        flags = {f.name: f.is_admin for f in functions}
        assert flags == {"Admin": False, "Member": True, "Lead": False}
        assert registry.get_function(lead.id).is_admin is False

    def test_default_lookups_follow_flags(self, registry, admin_function, member_function):
        registry.set_admin_flags([member_function.id])
        assert registry.default_admin().id == member_function.id
        assert registry.default_non_admin().id == admin_function.id

    def test_unknown_ids_ignored(self, registry, admin_function):
        functions = registry.set_admin_flags([admin_function.id, "missing"])
        assert [f.id for f in functions if f.is_admin] == [admin_function.id]

    def test_exclusive_scope_blocks_other_threads(self, registry):
        acquired = []
        with registry.exclusive():
            worker = threading.Thread(
                target=lambda: acquired.append(registry.exclusive().acquire(blocking=False))
            )
            worker.start()
            worker.join()
        assert acquired == [False]

    def test_exclusive_scope_is_reentrant(self, registry, member_function):
        with registry.exclusive():
            functions = registry.set_admin_flags([member_function.id])
        assert any(f.is_admin for f in functions)


class TestEventRecorder:
    recorder = EventRecorder()
    actor = User(login="carol")

    def test_created_event(self):
        project = Project(id="p1", name="X", actor_on_create=self.actor)
        [event] = self.recorder.events_for_save(project, is_new=True)
        assert event.event_type == "created"
        assert event.user_id == self.actor.id
        assert event.project_id == "p1"

    def test_created_event_requires_actor(self):
        with pytest.raises(MissingActorError):
            self.recorder.events_for_save(Project(id="p1", name="X"), is_new=True)

    def test_updated_event(self):
        project = Project(id="p1", name="X", actor_on_update=self.actor)
        [event] = self.recorder.events_for_save(project, is_new=False)
        assert event.event_type == "updated"

    def test_no_update_actor_no_event(self):
        assert self.recorder.events_for_save(Project(id="p1", name="X"), is_new=False) == []
