"""Tests for the org-chart hierarchy model."""
import logging
from datetime import datetime

import pytest

from innoflow_core.hierarchy import (
    HierarchyWorkspace,
    LEVEL_SPACING,
    NEW_NODE_TITLE,
    build_hierarchy_tree,
    find_parent_cycle,
)
from innoflow_core.schemas import HierarchyNode, MemberAssignment, Project, TeamMember

STAMP = datetime(2024, 1, 8, 9, 0, 0)


def node(node_id, parent_id=None, level=0):
    return HierarchyNode(
        id=node_id,
        project_id="proj-1",
        parent_id=parent_id,
        role_title=f"Role {node_id}",
        level=level,
        created_at=STAMP,
        updated_at=STAMP,
    )


def member(member_id):
    return TeamMember(id=member_id, name=f"Member {member_id}", email=f"{member_id}@example.com", created_at=STAMP)


def assignment(assignment_id, node_id, member_id):
    return MemberAssignment(id=assignment_id, hierarchy_node_id=node_id, team_member_id=member_id, assigned_at=STAMP)


def flatten(forest):
    for root in forest:
        yield root
        yield from flatten(root.children)


@pytest.fixture
def workspace():
    return HierarchyWorkspace(
        project=Project(id="proj-1", name="Test", created_at=STAMP, updated_at=STAMP),
        team_members=[member("m1"), member("m2"), member("m3")],
        nodes=[node("root"), node("lead", "root", 1), node("dev", "lead", 2)],
        assignments=[assignment("a1", "root", "m1")],
    )


class TestBuildHierarchyTree:
    """Test projecting flat lists into a forest."""

    def test_nests_children_under_parents(self):
        forest = build_hierarchy_tree(
            [node("a"), node("b", "a", 1), node("c", "a", 1), node("d", "b", 2)], [], []
        )
        assert [n.id for n in forest] == ["a"]
        assert [n.id for n in forest[0].children] == ["b", "c"]
        assert [n.id for n in forest[0].children[0].children] == ["d"]

    def test_multiple_roots(self):
        forest = build_hierarchy_tree([node("a"), node("b"), node("c", "b", 1)], [], [])
        assert [n.id for n in forest] == ["a", "b"]

    def test_child_listed_before_parent(self):
        forest = build_hierarchy_tree([node("child", "parent", 1), node("parent")], [], [])
        assert [n.id for n in forest] == ["parent"]
        assert [n.id for n in forest[0].children] == ["child"]

    def test_every_node_appears_exactly_once(self):
        nodes = [node("r1"), node("r2"), node("x", "r1", 1), node("y", "x", 2), node("z", "r2", 1)]
        ids = [n.id for n in flatten(build_hierarchy_tree(nodes, [], []))]
        assert sorted(ids) == sorted(n.id for n in nodes)
        assert len(ids) == len(set(ids))

    def test_orphan_is_dropped(self):
        forest = build_hierarchy_tree([node("a"), node("lost", "missing", 1)], [], [])
        ids = [n.id for n in flatten(forest)]
        assert ids == ["a"]

    def test_assignments_are_joined_to_members(self):
        forest = build_hierarchy_tree(
            [node("a")],
            [assignment("x1", "a", "m1"), assignment("x2", "a", "m2"), assignment("x3", "other", "m1")],
            [member("m1"), member("m2")],
        )
        resolved = forest[0].assignments
        assert [a.id for a in resolved] == ["x1", "x2"]
        assert resolved[0].member.name == "Member m1"

    def test_assignment_with_unknown_member_is_discarded(self):
        forest = build_hierarchy_tree([node("a")], [assignment("x1", "a", "ghost")], [member("m1")])
        assert forest[0].assignments == []

    def test_does_not_mutate_inputs(self):
        nodes = [node("a"), node("b", "a", 1)]
        build_hierarchy_tree(nodes, [], [])
        rebuilt = build_hierarchy_tree(nodes, [], [])
        assert len(rebuilt[0].children) == 1

    def test_cycle_is_left_out_without_looping(self):
        nodes = [node("root"), node("a", "b", 1), node("b", "a", 1)]
        forest = build_hierarchy_tree(nodes, [], [])
        assert [n.id for n in flatten(forest)] == ["root"]

    def test_empty_input(self):
        assert build_hierarchy_tree([], [], []) == []


class TestFindParentCycle:
    """Test cycle detection in parent references."""

    def test_no_cycle(self):
        assert find_parent_cycle([node("a"), node("b", "a", 1), node("c", "missing", 1)]) is None

    def test_two_node_cycle(self):
        cycle = find_parent_cycle([node("a", "b"), node("b", "a")])
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b"}

    def test_self_parent(self):
        assert find_parent_cycle([node("a", "a")]) == ["a", "a"]

    def test_tail_leading_into_cycle(self):
        cycle = find_parent_cycle([node("tail", "a"), node("a", "b"), node("b", "a")])
        assert "tail" not in cycle
        assert set(cycle) == {"a", "b"}


class TestHierarchyWorkspace:
    """Test assign / unassign / add node / reset."""

    def test_assign_appends_assignment(self, workspace):
        created = workspace.assign_member("lead", "m2")
        assert created is not None
        assert created.id.startswith("ma-")
        assert len(workspace.assignments) == 2

    def test_assign_is_idempotent(self, workspace):
        workspace.assign_member("lead", "m2")
        before = len(workspace.assignments)
        assert workspace.assign_member("lead", "m2") is None
        assert len(workspace.assignments) == before

    def test_member_can_hold_several_nodes(self, workspace):
        workspace.assign_member("lead", "m1")
        assert {a.hierarchy_node_id for a in workspace.assignments if a.team_member_id == "m1"} == {"root", "lead"}

    def test_unassign_removes_pair(self, workspace):
        assert workspace.unassign_member("root", "m1") == 1
        assert workspace.assignments == []

    def test_unassign_unknown_pair_is_noop(self, workspace):
        before = list(workspace.assignments)
        assert workspace.unassign_member("dev", "m3") == 0
        assert workspace.assignments == before

    def test_add_root_node(self, workspace):
        new = workspace.add_node(None)
        assert new.level == 0
        assert new.parent_id is None
        assert new.role_title == NEW_NODE_TITLE
        assert new.id in [n.id for n in workspace.tree()]

    def test_add_child_node_takes_parent_level_plus_one(self, workspace):
        new = workspace.add_node("dev")
        assert new.level == 3
        assert new.position_y == 3 * LEVEL_SPACING
        dev = workspace.tree()[0].children[0].children[0]
        assert [c.id for c in dev.children] == [new.id]

    def test_add_node_under_unknown_parent_becomes_orphan(self, workspace):
        new = workspace.add_node("nope")
        assert new.level == 0
        assert new.id not in [n.id for n in flatten(workspace.tree())]

    def test_reset_restores_initial_state(self, workspace):
        workspace.assign_member("dev", "m3")
        workspace.unassign_member("root", "m1")
        workspace.add_node("root")
        workspace.reset()
        assert [n.id for n in workspace.nodes] == ["root", "lead", "dev"]
        assert [a.id for a in workspace.assignments] == ["a1"]

    def test_tree_reflects_assignment_changes(self, workspace):
        workspace.assign_member("lead", "m2")
        lead = workspace.tree()[0].children[0]
        assert [a.member.id for a in lead.assignments] == ["m2"]

    def test_cycle_warned_once_at_load(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="innoflow-core.hierarchy"):
            cyclic = HierarchyWorkspace(
                project=Project(id="proj-1", name="Test", created_at=STAMP, updated_at=STAMP),
                team_members=[],
                nodes=[node("root"), node("a", "b", 1), node("b", "a", 1)],
                assignments=[],
            )
            cyclic.tree()
            cyclic.tree()

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "cycle" in warnings[0].getMessage().lower()

    def test_roster_split(self, workspace):
        available, assigned = workspace.roster()
        assert [m.id for m in assigned] == ["m1"]
        assert [m.id for m in available] == ["m2", "m3"]
        assert workspace.assigned_member_ids() == {"m1"}


class TestDemoData:
    """Test loading the bundled demo org chart."""

    def test_loads_bundled_yaml(self):
        workspace = HierarchyWorkspace.from_yaml()
        forest = workspace.tree()
        assert workspace.project.id == "proj-1"
        assert len(forest) == 1
        assert len(list(flatten(forest))) == len(workspace.nodes)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HierarchyWorkspace.from_yaml(tmp_path / "missing.yaml")
