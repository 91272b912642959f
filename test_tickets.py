# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for ticket numbering, tag aggregation and the ticket service.
"""

import random
import threading

import pytest

from tracker.services.tags import count_tags, normalize_tags


@pytest.fixture
def tickets(container):
    return container.ticket_service


# ============================================
# Ticket numbering
# ============================================
class TestTicketNumbering:
    def test_fresh_project_issues_one_two_three(self, projects, project):
        issued = [projects.next_ticket_number(project.id) for _ in range(3)]
        assert issued == [1, 2, 3]
        assert projects.get_project(project.id).num_ticket == 4

    def test_counters_are_per_project(self, projects, project, bob):
        other = projects.create({"name": "Other"}, bob)
        assert projects.next_ticket_number(project.id) == 1
        assert projects.next_ticket_number(project.id) == 2
        assert projects.next_ticket_number(other.id) == 1

    def test_unknown_project(self, projects):
        with pytest.raises(KeyError):
            projects.next_ticket_number("missing")

    def test_project_save_keeps_counter(self, projects, project, alice):
        projects.next_ticket_number(project.id)
        projects.update(project.id, {"description": "renamed"}, actor=alice)
        assert projects.next_ticket_number(project.id) == 2

    def test_tickets_receive_sequential_numbers(self, tickets, project):
        numbers = [tickets.create_ticket(project.id, f"T{i}").number for i in range(3)]
        assert numbers == [1, 2, 3]

    def test_concurrent_issuers_never_share_a_number(self, projects, project):
        workers, per_worker = 8, 25
        barrier = threading.Barrier(workers)
        issued: list[int] = []
        issued_lock = threading.Lock()

        def issue():
            barrier.wait()
            numbers = [projects.next_ticket_number(project.id) for _ in range(per_worker)]
            with issued_lock:
                issued.extend(numbers)

        threads = [threading.Thread(target=issue) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(issued) == workers * per_worker
        assert sorted(issued) == list(range(1, workers * per_worker + 1))
        assert projects.get_project(project.id).num_ticket == len(issued) + 1


# ============================================
# Tag aggregation (pure)
# ============================================
class TestCountTags:
    def test_empty(self):
        assert count_tags([]) == {}
        assert count_tags([[], []]) == {}

    def test_counts_occurrences(self):
        assert count_tags([["foo"], ["foo", "bar"], ["bar"]]) == {"foo": 2, "bar": 2}

    def test_accepts_lazy_tag_lists(self):
        tag_lists = (iter(tags) for tags in [["foo"], ["foo", "bar"]])
        assert count_tags(tag_lists) == {"foo": 2, "bar": 1}

    def test_order_independent(self):
        tag_lists = [[], ["foo"], ["foo", "bar"], ["bar"], ["foo", "bar", "baz"]]
        shuffled = list(tag_lists)
        random.Random(7).shuffle(shuffled)
        assert count_tags(tag_lists) == count_tags(shuffled) == count_tags(reversed(tag_lists))

    def test_normalize_tags(self):
        assert normalize_tags([" foo", "bar ", "", "foo", "  "]) == ["foo", "bar"]


# ============================================
# Tag counts maintained by tickets
# ============================================
class TestTagCounts:
    def test_incremental_sequence(self, projects, tickets, project):
        expected = [
            ([], {}),
            (["foo"], {"foo": 1}),
            (["foo", "bar"], {"foo": 2, "bar": 1}),
            (["bar"], {"foo": 2, "bar": 2}),
            (["foo", "bar", "baz"], {"foo": 3, "bar": 3, "baz": 1}),
        ]
        for tags, counts in expected:
            tickets.create_ticket(project.id, "ticket", tags=tags)
            assert projects.recompute_tag_counts(project.id) == counts
            assert projects.get_project(project.id).tag_counts == counts

    def test_recompute_is_idempotent(self, projects, tickets, project):
        tickets.create_ticket(project.id, "a", tags=["foo", "bar"])
        first = projects.recompute_tag_counts(project.id)
        second = projects.recompute_tag_counts(project.id)
        assert first == second == {"foo": 1, "bar": 1}

    def test_create_recomputes(self, projects, tickets, project):
        tickets.create_ticket(project.id, "a", tags=["ui", "ui", " api "])
        assert projects.get_project(project.id).tag_counts == {"ui": 1, "api": 1}

    def test_retag_recomputes(self, projects, tickets, project):
        ticket = tickets.create_ticket(project.id, "a", tags=["ui"])
        tickets.update_ticket(ticket.id, {"tags": ["api"]})
        assert projects.get_project(project.id).tag_counts == {"api": 1}

    def test_delete_recomputes(self, projects, tickets, project):
        kept = tickets.create_ticket(project.id, "a", tags=["ui"])
        dropped = tickets.create_ticket(project.id, "b", tags=["ui", "api"])
        tickets.delete_ticket(dropped.id)
        assert projects.get_project(project.id).tag_counts == {"ui": 1}
        assert tickets.get_ticket(kept.id).tags == ["ui"]

    def test_milestone_tag_counts(self, container, tickets, project):
        milestone = container.milestone_service.create_milestone(project.id, "v1")
        tickets.create_ticket(project.id, "a", tags=["ui"], milestone_id=milestone.id)
        tickets.create_ticket(project.id, "b", tags=["ui", "api"], milestone_id=milestone.id)
        tickets.create_ticket(project.id, "c", tags=["docs"])
        assert container.milestone_service.milestone_tag_counts(milestone.id) == {"ui": 2, "api": 1}


# ============================================
# Ticket service
# ============================================
class TestTicketService:
    def test_blank_title_rejected(self, tickets, project):
        with pytest.raises(ValueError):
            tickets.create_ticket(project.id, "   ")

    def test_unknown_project(self, tickets):
        with pytest.raises(KeyError):
            tickets.create_ticket("missing", "a")

    def test_milestone_from_other_project_rejected(self, container, projects, tickets, project, bob):
        other = projects.create({"name": "Other"}, bob)
        foreign = container.milestone_service.create_milestone(other.id, "theirs")
        with pytest.raises(ValueError):
            tickets.create_ticket(project.id, "a", milestone_id=foreign.id)

    def test_update_fields(self, tickets, project):
        ticket = tickets.create_ticket(project.id, "a")
        updated = tickets.update_ticket(ticket.id, {"title": "renamed", "description": "d"})
        assert updated.title == "renamed"
        assert tickets.get_ticket(ticket.id).description == "d"
        assert tickets.get_ticket(ticket.id).number == ticket.number

    def test_update_rejects_number(self, tickets, project):
        ticket = tickets.create_ticket(project.id, "a")
        with pytest.raises(ValueError):
            tickets.update_ticket(ticket.id, {"number": 42})

    def test_list_by_milestone(self, container, tickets, project):
        milestone = container.milestone_service.create_milestone(project.id, "v1")
        tickets.create_ticket(project.id, "a", milestone_id=milestone.id)
        tickets.create_ticket(project.id, "b")
        assert [t.title for t in tickets.list_tickets(project.id)] == ["a", "b"]
        assert [t.title for t in tickets.list_tickets(project.id, milestone.id)] == ["a"]

    def test_delete_missing(self, tickets):
        with pytest.raises(KeyError):
            tickets.delete_ticket("missing")
