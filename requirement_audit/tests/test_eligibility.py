"""
Tests: Audit Eligibility Engine.

Run with:
    pytest requirement_audit/tests/test_eligibility.py -v
"""

from requirement_audit.engine import (
    index_by_id,
    is_auditable,
    rank_all_by_risk,
    select_for_audit,
)
from requirement_audit.engine.eligibility import auditable_requirements, rank_by_risk
from requirement_audit.models.schemas import Requirement


def req(req_id: str, **fields) -> Requirement:
    fields.setdefault("section", "1")
    fields.setdefault("text", "t")
    return Requirement(id=req_id, **fields)


def eligible_ids(requirements: list[Requirement]) -> list[str]:
    return [r.id for r in auditable_requirements(requirements)]


class TestChildrenRule:
    def test_leaf_is_eligible(self):
        assert eligible_ids([req("a")]) == ["a"]

    def test_container_is_never_eligible(self):
        reqs = [req("g", text="", is_container=True)]
        assert eligible_ids(reqs) == []

    def test_parent_one_cycle_ahead_of_children(self):
        reqs = [
            req("p", n_audit=1, children_ids=["c1", "c2"]),
            req("c1", section="1.1", parent_id="p", n_audit=0),
            req("c2", section="1.2", parent_id="p", n_audit=0),
        ]
        assert "p" in eligible_ids(reqs)

    def test_parent_level_with_children_is_not_eligible(self):
        reqs = [
            req("p", n_audit=0, children_ids=["c"]),
            req("c", section="1.1", parent_id="p", n_audit=0),
        ]
        assert eligible_ids(reqs) == ["c"]

    def test_one_lagging_child_blocks_parent(self):
        reqs = [
            req("p", n_audit=2, children_ids=["c1", "c2"]),
            req("c1", section="1.1", parent_id="p", n_audit=1),
            req("c2", section="1.2", parent_id="p", n_audit=0),
        ]
        assert "p" not in eligible_ids(reqs)

    def test_missing_child_blocks_parent(self):
        reqs = [req("p", n_audit=1, children_ids=["gone"])]
        assert eligible_ids(reqs) == []


class TestDependencyRule:
    def test_unaudited_requirement_ignores_dependencies(self):
        # First audit is never gated on dependencies, even missing ones.
        reqs = [req("a", dependencies=["b", "gone"]), req("b", section="2", n_audit=5)]
        assert "a" in eligible_ids(reqs)

    def test_dependency_one_cycle_behind(self):
        reqs = [req("a", n_audit=1, dependencies=["b"]), req("b", section="2", n_audit=0)]
        assert is_auditable(reqs[0], index_by_id(reqs)) is True

    def test_dependency_at_same_cycle_blocks(self):
        reqs = [req("a", n_audit=1, dependencies=["b"]), req("b", section="2", n_audit=1)]
        assert is_auditable(reqs[0], index_by_id(reqs)) is False

    def test_missing_dependency_blocks_audited_requirement(self):
        reqs = [req("a", n_audit=1, dependencies=["gone"])]
        assert is_auditable(reqs[0], index_by_id(reqs)) is False

    def test_both_rules_must_hold(self):
        reqs = [
            req("p", n_audit=1, children_ids=["c"], dependencies=["d"]),
            req("c", section="1.1", parent_id="p", n_audit=0),
            req("d", section="2", n_audit=1),
        ]
        assert is_auditable(reqs[0], index_by_id(reqs)) is False


class TestProposal:
    def _pool(self) -> list[Requirement]:
        return [req(f"r{i:02d}", section=str(i), risk=float(i)) for i in range(15)]

    def test_top_ten_by_descending_risk(self):
        proposal, total = select_for_audit(self._pool())
        assert total == 15
        assert [r.id for r in proposal] == [f"r{i:02d}" for i in range(14, 4, -1)]

    def test_avoid_list_applies_before_truncation(self):
        proposal, total = select_for_audit(self._pool(), ["r14", "r13"])
        assert total == 15
        assert len(proposal) == 10
        assert proposal[0].id == "r12"
        assert proposal[-1].id == "r03"

    def test_total_excludes_ineligible(self):
        pool = self._pool() + [req("g", section="99", text="", is_container=True)]
        _, total = select_for_audit(pool)
        assert total == 15

    def test_custom_limit(self):
        proposal, _ = select_for_audit(self._pool(), limit=3)
        assert [r.id for r in proposal] == ["r14", "r13", "r12"]

    def test_ties_keep_input_order(self):
        reqs = [req("a", risk=5.0), req("b", risk=5.0), req("c", risk=7.0)]
        assert [r.id for r in rank_by_risk(reqs)] == ["c", "a", "b"]


class TestRankAllByRisk:
    def test_no_eligibility_gating(self):
        reqs = [
            req("p", n_audit=0, children_ids=["c"], risk=40.0),
            req("c", section="1.1", parent_id="p", risk=10.0),
        ]
        assert [r.id for r in rank_all_by_risk(reqs)] == ["p", "c"]

    def test_zero_risk_excluded(self):
        reqs = [req("a", risk=0.0), req("b", risk=3.0)]
        assert [r.id for r in rank_all_by_risk(reqs)] == ["b"]

    def test_avoid_list(self):
        reqs = [req("a", risk=9.0), req("b", risk=3.0)]
        assert [r.id for r in rank_all_by_risk(reqs, ["a"])] == ["b"]
