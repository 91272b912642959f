# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Project aggregate: lifecycle, invariants, membership,
function reassignment, audit events and destruction.
"""

from unittest.mock import patch

import pytest

from tracker.core.exceptions import (
    ConfigurationError,
    MissingActorError,
    RecordInvalid,
    StaleProjectError,
)
from tracker.models.domain import ProjectMember
from tracker.services.project_service import (
    REASON_INVALID,
    REASON_NO_ADMIN,
    REASON_UNKNOWN_IDS,
)


def _member_of(project, user):
    return next(m for m in project.project_members if m.user_id == user.id)


# ============================================
# Creation
# ============================================
class TestCreate:
    def test_created_project_has_single_admin_member(self, project, alice, admin_function):
        assert len(project.project_members) == 1
        member = project.project_members[0]
        assert member.user_id == alice.id
        assert member.user_name == "alice"
        assert member.function_id == admin_function.id
        assert member.function_name == "Admin"
        assert member.is_admin is True

    def test_created_project_is_persisted(self, projects, project):
        stored = projects.get_project(project.id)
        assert stored.name == "Tracker"
        assert stored.title == "Tracker"
        assert stored.lock_version == 0
        assert stored.num_ticket is None
        assert stored.tag_counts == {}
        assert stored.created_at is not None

    def test_created_event_attributed_to_founder(self, projects, project, alice):
        events = projects.list_events(project.id)
        assert len(events) == 1
        assert events[0].event_type == "created"
        assert events[0].user_id == alice.id
        assert events[0].eventable_type == "project"
        assert events[0].eventable_id == project.id

    def test_create_without_founder_persists_nothing(self, container, projects):
        with pytest.raises(MissingActorError):
            projects.create({"name": "Orphan"}, None)
        assert container.project_repo.count() == 0
        assert container.event_repo.count() == 0

    def test_missing_founder_is_a_configuration_error(self, projects):
        with pytest.raises(ConfigurationError):
            projects.create({"name": "Orphan"}, None)

    def test_saving_new_project_without_actor_is_rejected(self, container, projects, alice):
        project = projects.new_with_admin_member({"name": "Quiet"}, alice)
        project.actor_on_create = None
        with pytest.raises(MissingActorError):
            projects.save(project)
        assert project.id is None
        assert container.project_repo.count() == 0

    def test_create_without_admin_function_fails(self, registry, projects, alice):
        registry.set_admin_flags([])
        with pytest.raises(ConfigurationError):
            projects.create({"name": "NoAdmin"}, alice)

    def test_new_with_admin_member_is_unsaved(self, projects, alice):
        project = projects.new_with_admin_member({"name": "Draft"}, alice)
        assert project.is_new
        assert project.created_at is None
        assert [m.user_id for m in project.project_members] == [alice.id]
        assert project.actor_on_create == alice

    def test_blank_name_rejected(self, container, projects, alice):
        with pytest.raises(RecordInvalid) as exc:
            projects.create({"name": "  "}, alice)
        assert exc.value.errors["name"] == ["can't be blank"]
        assert container.project_repo.count() == 0
        assert container.event_repo.count() == 0

    def test_duplicate_name_rejected(self, projects, project, bob):
        with pytest.raises(RecordInvalid) as exc:
            projects.create({"name": "Tracker"}, bob)
        assert exc.value.errors["name"] == ["has already been taken"]


# ============================================
# Save-time invariants
# ============================================
class TestValidation:
    def test_empty_member_set_fails(self, projects, project):
        project.project_members = []
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert "can't be empty" in exc.value.errors["project_members"]
        assert "need an admin" in exc.value.errors["project_members"]

    def test_members_without_admin_fail(self, projects, project, bob, member_function):
        project.project_members = [
            ProjectMember(user_id=bob.id, function_id=member_function.id)
        ]
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert exc.value.errors["project_members"] == ["need an admin"]

    def test_demoting_last_admin_fails(self, projects, project, member_function):
        project.project_members[0].function_id = member_function.id
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert "need an admin" in exc.value.errors["project_members"]
        assert projects.get_project(project.id).project_members[0].is_admin is True

    def test_duplicate_member_fails(self, projects, project, alice, member_function):
        project.project_members.append(
            ProjectMember(user_id=alice.id, function_id=member_function.id)
        )
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert exc.value.errors["same_project_members"] == ["not several same member in project"]

    def test_unknown_user_reference_fails(self, projects, project, member_function):
        project.project_members.append(
            ProjectMember(user_id="ghost", function_id=member_function.id)
        )
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert "references an unknown user" in exc.value.errors["project_members"]

    def test_unknown_function_reference_fails(self, projects, project, bob):
        project.project_members.append(ProjectMember(user_id=bob.id, function_id="ghost"))
        with pytest.raises(RecordInvalid) as exc:
            projects.save(project)
        assert "references an unknown function" in exc.value.errors["project_members"]

    def test_rejected_save_writes_no_event(self, container, projects, project, alice):
        before = container.event_repo.count()
        project.name = ""
        project.actor_on_update = alice
        with pytest.raises(RecordInvalid):
            projects.save(project)
        assert container.event_repo.count() == before

    def test_denormalized_fields_refreshed_on_save(self, projects, project):
        project.project_members[0].function_name = "stale"
        project.project_members[0].user_name = "stale"
        projects.save(project)
        stored = projects.get_project(project.id).project_members[0]
        assert stored.function_name == "Admin"
        assert stored.user_name == "alice"


# ============================================
# Update & optimistic locking
# ============================================
class TestUpdate:
    def test_update_records_event_for_actor(self, projects, project, bob):
        updated = projects.update(project.id, {"description": "new"}, actor=bob)
        assert updated.description == "new"
        assert updated.lock_version == 1
        events = projects.list_events(project.id, event_type="updated")
        assert len(events) == 1
        assert events[0].user_id == bob.id

    def test_update_without_actor_records_no_event(self, projects, project):
        projects.update(project.id, {"description": "silent"})
        assert projects.list_events(project.id, event_type="updated") == []

    def test_update_rejects_unknown_fields(self, projects, project):
        with pytest.raises(ValueError):
            projects.update(project.id, {"num_ticket": 99})

    def test_update_missing_project(self, projects):
        with pytest.raises(KeyError):
            projects.update("missing", {"name": "x"})

    def test_concurrent_save_is_stale(self, projects, project):
        first = projects.get_project(project.id)
        second = projects.get_project(project.id)
        first.description = "first"
        projects.save(first)
        second.description = "second"
        with pytest.raises(StaleProjectError):
            projects.save(second)
        assert projects.get_project(project.id).description == "first"

    def test_actors_cleared_after_save(self, projects, project, alice):
        project.actor_on_update = alice
        projects.save(project)
        assert project.actor_on_update is None

    def test_actors_cleared_after_failed_write(self, container, projects, project, alice):
        project.actor_on_update = alice
        with patch.object(container.project_repo, "save", side_effect=StaleProjectError("stale")):
            with pytest.raises(StaleProjectError):
                projects.save(project)
        assert project.actor_on_update is None
        assert project.id is not None

    def test_new_project_reset_after_failed_write(self, container, projects, alice):
        fresh = projects.new_with_admin_member({"name": "Fresh"}, alice)
        taken = RecordInvalid({"name": ["has already been taken"]})
        with patch.object(container.project_repo, "save", side_effect=taken):
            with pytest.raises(RecordInvalid):
                projects.save(fresh)
        assert fresh.id is None
        assert fresh.actor_on_create is None


# ============================================
# Membership
# ============================================
class TestMembership:
    def test_add_member_is_idempotent(self, projects, project, bob, member_function):
        projects.add_member(project.id, bob.id, member_function.id)
        projects.add_member(project.id, bob.id, member_function.id)
        stored = projects.get_project(project.id)
        assert [m.user_id for m in stored.project_members].count(bob.id) == 1

    def test_add_member_copies_role(self, projects, project, bob, member_function):
        updated = projects.add_member(project.id, bob.id, member_function.id)
        member = _member_of(updated, bob)
        assert member.function_name == "Member"
        assert member.is_admin is False
        assert member.user_name == "bob"

    def test_add_member_unknown_user(self, projects, project, member_function):
        with pytest.raises(KeyError):
            projects.add_member(project.id, "ghost", member_function.id)

    def test_add_member_unknown_function(self, projects, project, bob):
        with pytest.raises(KeyError):
            projects.add_member(project.id, bob.id, "ghost")

    def test_add_member_records_update_event(self, projects, project, alice, bob, member_function):
        projects.add_member(project.id, bob.id, member_function.id, actor=alice)
        assert len(projects.list_events(project.id, event_type="updated")) == 1

    def test_remove_member(self, projects, project, bob, member_function):
        updated = projects.add_member(project.id, bob.id, member_function.id)
        member = _member_of(updated, bob)
        projects.remove_member(project.id, member.id)
        stored = projects.get_project(project.id)
        assert [m.user_id for m in stored.project_members] == [project.project_members[0].user_id]

    def test_cannot_remove_last_admin(self, projects, project, bob, member_function):
        projects.add_member(project.id, bob.id, member_function.id)
        admin_member = project.project_members[0]
        with pytest.raises(RecordInvalid):
            projects.remove_member(project.id, admin_member.id)
        assert len(projects.get_project(project.id).project_members) == 2

    def test_remove_unknown_member(self, projects, project):
        with pytest.raises(KeyError):
            projects.remove_member(project.id, "ghost")

    def test_membership_of(self, projects, project, alice, bob):
        assert projects.membership_of(project.id, alice.id).is_admin is True
        assert projects.membership_of(project.id, bob.id) is None


# ============================================
# Function reassignment
# ============================================
class TestReassignFunctions:
    @pytest.fixture
    def team(self, projects, project, alice, bob, member_function):
        updated = projects.add_member(project.id, bob.id, member_function.id)
        return _member_of(updated, alice), _member_of(updated, bob)

    def test_swap_admin(self, projects, project, team, admin_function, member_function):
        alice_member, bob_member = team
        result = projects.reassign_functions(project.id, {
            alice_member.id: member_function.id,
            bob_member.id: admin_function.id,
        })
        assert result.success is True
        stored = projects.get_project(project.id)
        assert stored.member(alice_member.id).is_admin is False
        assert stored.member(bob_member.id).is_admin is True
        assert stored.member(bob_member.id).function_name == "Admin"

    def test_no_admin_target_rejected_without_mutation(self, projects, project, team, member_function):
        _, bob_member = team
        result = projects.reassign_functions(project.id, {bob_member.id: member_function.id})
        assert result.success is False
        assert result.reason == REASON_NO_ADMIN
        assert projects.get_project(project.id).lock_version == project.lock_version + 1

    def test_empty_assignment_rejected(self, projects, project, team):
        result = projects.reassign_functions(project.id, {})
        assert result.success is False
        assert result.reason == REASON_NO_ADMIN

    def test_unknown_ids_reported(self, projects, project, team, admin_function):
        _, bob_member = team
        result = projects.reassign_functions(project.id, {
            "ghost-member": admin_function.id,
            bob_member.id: "ghost-function",
        })
        assert result.success is False
        assert result.reason == REASON_UNKNOWN_IDS
        assert result.invalid_member_ids == ["ghost-member"]
        assert result.invalid_function_ids == ["ghost-function"]

    def test_all_or_nothing(self, projects, project, team, admin_function):
        alice_member, bob_member = team
        result = projects.reassign_functions(project.id, {
            bob_member.id: admin_function.id,
            "ghost-member": admin_function.id,
        })
        assert result.success is False
        stored = projects.get_project(project.id)
        assert stored.member(bob_member.id).is_admin is False
        assert stored.member(alice_member.id).is_admin is True

    def test_save_time_invariant_still_applies(self, projects, project, team, admin_function):
        _, bob_member = team
        rejection = RecordInvalid({"project_members": ["need an admin"]})
        with patch.object(projects, "save", side_effect=rejection):
            result = projects.reassign_functions(project.id, {bob_member.id: admin_function.id})
        assert result.success is False
        assert result.reason == REASON_INVALID
        assert result.errors == {"project_members": ["need an admin"]}
        assert projects.get_project(project.id).member(bob_member.id).is_admin is False

    def test_missing_project(self, projects, admin_function):
        with pytest.raises(KeyError):
            projects.reassign_functions("missing", {"m": admin_function.id})


# ============================================
# Destruction
# ============================================
class TestDestroy:
    def test_destroy_removes_owned_records(self, container, projects, project):
        milestone = container.milestone_service.create_milestone(project.id, "v1")
        container.ticket_service.create_ticket(project.id, "Bug", tags=["ui"], milestone_id=milestone.id)
        container.ticket_service.create_ticket(project.id, "Task")

        result = projects.destroy(project.id)

        assert result["status"] == "deleted"
        assert result["removed"]["tickets"] == 2
        assert result["removed"]["milestones"] == 1
        for table in ("tickets", "milestones", "events", "project_members"):
            assert container.project_repo.count_owned(table, project.id) == 0
        assert projects.find_project(project.id) is None

    def test_destroy_leaves_other_projects(self, container, projects, project, bob):
        other = projects.create({"name": "Other"}, bob)
        container.ticket_service.create_ticket(other.id, "Keep me")
        projects.destroy(project.id)
        assert container.project_repo.count_owned("tickets", other.id) == 1
        assert container.project_repo.count_owned("events", other.id) == 1

    def test_destroy_missing_project(self, projects):
        with pytest.raises(KeyError):
            projects.destroy("missing")


# ============================================
# Queries
# ============================================
class TestQueries:
    def test_list_projects_sorted_by_name(self, projects, project, bob):
        projects.create({"name": "Alpha"}, bob)
        assert [p.name for p in projects.list_projects()] == ["Alpha", "Tracker"]

    def test_get_missing_project(self, projects):
        with pytest.raises(KeyError):
            projects.get_project("missing")

    def test_last_activity_is_latest_event(self, projects, project):
        events = projects.list_events(project.id)
        assert projects.last_activity_at(project.id) == events[0].created_at

    def test_list_events_respects_limit(self, projects, project, alice):
        for i in range(3):
            projects.update(project.id, {"description": f"rev {i}"}, actor=alice)
        assert len(projects.list_events(project.id, limit=2)) == 2
        assert len(projects.list_events(project.id)) == 4

    def test_list_events_missing_project(self, projects):
        with pytest.raises(KeyError):
            projects.list_events("missing")
