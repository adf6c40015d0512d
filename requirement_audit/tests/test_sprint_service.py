"""
Tests: SprintService lifecycle, audit completion and story points.

Run with:
    pytest requirement_audit/tests/test_sprint_service.py -v
"""

import pytest

from requirement_audit.config import Settings
from requirement_audit.exceptions import IssueTrackerError, NotFoundError, SprintStateError
from requirement_audit.models.schemas import SprintConfig, SprintDraft, SprintUpdate
from requirement_audit.persistence import InMemoryKeyValueStore
from requirement_audit.services import CatalogService, IssueService, SprintService
from requirement_audit.tests.sample_data import TREE


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def catalogs(store):
    return CatalogService(store, Settings())


@pytest.fixture
def catalog_id(catalogs):
    return catalogs.import_requirements_from_custom_csv(TREE, "Security").catalog_id


@pytest.fixture
def service(store, catalog_id):
    return SprintService(store)


def draft(number: int, *ids: str, **params) -> SprintDraft:
    return SprintDraft(sprint_number=number, requirement_ids=list(ids), **params)


class TestSprintConfig:
    def test_default_config_when_unset(self, service):
        config = service.get_sprint_config()
        assert config.is_default is True
        assert config.create_issues is False

    def test_saved_config(self, service):
        service.save_sprint_config(SprintConfig(sprint_number=3, sprint_capacity=40))
        config = service.get_sprint_config()
        assert config.is_default is False
        assert config.sprint_capacity == 40


class TestSprintLifecycle:
    def test_create_snapshots_catalog_requirements(self, service, catalogs, catalog_id):
        catalogs.calculate_risks_by_catalog(catalog_id, 1)
        sprint = service.save_sprint(draft(1, "REQ-1.2", "REQ-2.1", sprint_capacity=20))
        assert sprint.is_active is True
        assert [r.id for r in sprint.requirements] == ["REQ-1.2", "REQ-2.1"]
        entry = sprint.requirements[0]
        assert entry.catalog_id == catalog_id
        assert entry.catalog_title == "Security"
        assert entry.risk == pytest.approx(52.5167, abs=1e-3)

    def test_unknown_requirement_rejected(self, service):
        with pytest.raises(NotFoundError):
            service.save_sprint(draft(1, "REQ-1.1", "missing"))
        assert service.get_all_sprints() == []

    def test_extend_active_sprint_skips_present_ids(self, service):
        service.save_sprint(draft(1, "REQ-1.1"))
        sprint = service.save_sprint(draft(1, "REQ-1.1", "REQ-2", "REQ-2"))
        assert [r.id for r in sprint.requirements] == ["REQ-1.1", "REQ-2"]

    def test_second_active_sprint_rejected(self, service):
        service.save_sprint(draft(1, "REQ-1.1"))
        with pytest.raises(SprintStateError):
            service.save_sprint(draft(2, "REQ-2"))

    def test_closed_sprint_is_frozen(self, service):
        service.save_sprint(draft(1, "REQ-1.1"))
        closed = service.end_actual_sprint(1)
        assert closed.is_active is False
        assert service.get_active_sprint() is None

        with pytest.raises(SprintStateError):
            service.save_sprint(draft(1, "REQ-2"))
        with pytest.raises(SprintStateError):
            service.modify_sprint(1, SprintUpdate(team_size=4))
        with pytest.raises(SprintStateError):
            service.remove_requirement_from_sprint(1, "REQ-1.1")
        with pytest.raises(SprintStateError):
            service.end_actual_sprint(1)

    def test_next_sprint_after_close(self, service):
        service.save_sprint(draft(1, "REQ-1.1"))
        service.end_actual_sprint(1)
        service.save_sprint(draft(2, "REQ-2"))
        assert [s.sprint_number for s in service.get_all_sprints()] == [1, 2]
        assert service.get_active_sprint().sprint_number == 2

    def test_sprints_ordered_numerically(self, service):
        for number in (2, 10):
            service.save_sprint(draft(number, "REQ-1.1"))
            service.end_actual_sprint(number)
        assert [s.sprint_number for s in service.get_all_sprints()] == [2, 10]

    def test_modify_sprint(self, service):
        service.save_sprint(draft(1, "REQ-1.1", project_name="Q1", team_size=2))
        sprint = service.modify_sprint(1, SprintUpdate(team_size=5))
        assert sprint.team_size == 5
        assert sprint.project_name == "Q1"

    def test_remove_requirement(self, service):
        service.save_sprint(draft(1, "REQ-1.1", "REQ-2"))
        result = service.remove_requirement_from_sprint(1, "REQ-1.1")
        assert result.removed_id == "REQ-1.1"
        assert [r.id for r in service.get_sprint_by_number(1).requirements] == ["REQ-2"]
        with pytest.raises(NotFoundError):
            service.remove_requirement_from_sprint(1, "REQ-1.1")

    def test_unknown_sprint(self, service):
        with pytest.raises(NotFoundError, match="Sprint 7 not found"):
            service.get_sprint_by_number(7)

    def test_points_used(self, service):
        service.save_sprint(draft(1, "REQ-1.1", "REQ-2", sprint_capacity=20, points_per_requirement=3))
        service.update_requirement_story_points("REQ-2", 5)
        sprint = service.get_sprint_by_number(1)
        assert sprint.points_used() == 8
        assert sprint.remaining_capacity() == 12

    def test_delete_all_sprints(self, service):
        service.save_sprint(draft(1, "REQ-1.1"))
        assert service.delete_all_sprints() == 1
        assert service.get_all_sprints() == []


class TestAuditCompletion:
    def test_full_cycle(self, service, catalogs, catalog_id):
        catalogs.calculate_risks_by_catalog(catalog_id, 1)
        proposal = catalogs.select_requirements_for_audit(catalog_id).selected_requirements
        service.save_sprint(draft(1, *[r.id for r in proposal]))

        result = service.mark_as_audited(["REQ-1.2", "REQ-1.1"], 1)
        assert result.updated_count == 2

        stored = {r.id: r for r in catalogs.get_catalog_requirements(catalog_id)}
        assert stored["REQ-1.1"].n_audit == 1
        assert stored["REQ-1.1"].last_audit_sprint == 1
        assert stored["REQ-2.1"].n_audit == 0

        snapshot = {r.id: r for r in service.get_sprint_by_number(1).requirements}
        assert snapshot["REQ-1.2"].n_audit == 1
        assert snapshot["REQ-2.1"].n_audit == 0

        service.end_actual_sprint(1)
        catalogs.calculate_risks_by_catalog(catalog_id, 2)
        risks = {r.id: r.risk for r in catalogs.get_catalog_requirements(catalog_id)}
        assert risks["REQ-1.1"] == pytest.approx(35 * 1.15 * 0.5)

    def test_closed_sprint_still_takes_audit_marks(self, service):
        service.save_sprint(draft(1, "REQ-2.1"))
        service.end_actual_sprint(1)
        service.mark_as_audited(["REQ-2.1"], 1)
        assert service.get_sprint_by_number(1).requirements[0].n_audit == 1

    def test_double_submission_increments_twice(self, service, catalogs, catalog_id):
        service.mark_as_audited(["REQ-2"], 1)
        service.mark_as_audited(["REQ-2"], 1)
        stored = {r.id: r for r in catalogs.get_catalog_requirements(catalog_id)}
        assert stored["REQ-2"].n_audit == 2

    def test_unknown_ids_count_nothing(self, service):
        assert service.mark_as_audited(["missing"], 1).updated_count == 0


class TestStoryPoints:
    def test_updates_catalog_and_active_sprint(self, service, catalogs, catalog_id):
        service.save_sprint(draft(1, "REQ-2"))
        assert service.update_requirement_story_points("REQ-2", 8) is True
        stored = {r.id: r for r in catalogs.get_catalog_requirements(catalog_id)}
        assert stored["REQ-2"].effort == 8
        assert service.get_sprint_by_number(1).requirements[0].effort == 8

    def test_closed_sprint_snapshot_untouched(self, service, catalogs, catalog_id):
        service.save_sprint(draft(1, "REQ-2"))
        service.end_actual_sprint(1)
        service.update_requirement_story_points("REQ-2", 8)
        assert service.get_sprint_by_number(1).requirements[0].effort is None
        stored = {r.id: r for r in catalogs.get_catalog_requirements(catalog_id)}
        assert stored["REQ-2"].effort == 8

    def test_unknown_requirement(self, service):
        with pytest.raises(NotFoundError):
            service.update_requirement_story_points("missing", 3)


class TestIssueCreation:
    def test_mock_issue_keys_on_snapshot(self, store, catalog_id):
        issues = IssueService(Settings(mock_mode=True, issue_tracker_project="AUD"))
        service = SprintService(store, issues)
        service.save_sprint_config(SprintConfig(create_issues=True))

        sprint = service.save_sprint(draft(1, "REQ-1.1", "REQ-2"))
        assert [r.issue_key for r in sprint.requirements] == ["AUD-1", "AUD-2"]
        assert [i["requirement_id"] for i in issues.created_issues()] == ["REQ-1.1", "REQ-2"]

    def test_no_issues_unless_configured(self, store, catalog_id):
        issues = IssueService(Settings(mock_mode=True))
        sprint = SprintService(store, issues).save_sprint(draft(1, "REQ-1.1"))
        assert sprint.requirements[0].issue_key is None
        assert issues.created_issues() == []

    def test_tracker_failure_does_not_block_sprint(self, store, catalog_id):
        issues = IssueService(Settings(mock_mode=False, issue_tracker_url=""))
        service = SprintService(store, issues)
        service.save_sprint_config(SprintConfig(create_issues=True))

        sprint = service.save_sprint(draft(1, "REQ-1.1"))
        assert [r.id for r in sprint.requirements] == ["REQ-1.1"]
        assert sprint.requirements[0].issue_key is None

    def test_live_mode_without_url_raises(self):
        issues = IssueService(Settings(mock_mode=False, issue_tracker_url=""))
        from requirement_audit.models.schemas import SprintRequirement

        with pytest.raises(IssueTrackerError, match="not configured"):
            issues.create_issue(SprintRequirement(id="REQ-1"))
