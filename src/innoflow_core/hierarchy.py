"""Org-chart hierarchy: role nodes, member assignments and the derived tree.

Canonical state is two flat lists (nodes and assignments). The nested tree is
never stored; ``build_hierarchy_tree`` projects it from the flat lists on
every read, so any combination of inputs can be projected without going
through the workspace.

Nodes whose parent id is missing from the node list (orphans) and nodes on a
parent cycle are unreachable from any root and are left out of the tree.
No operation here raises for unknown ids.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

import yaml

from .schemas import (
    HierarchyNode,
    HierarchyNodeWithAssignments,
    MemberAssignment,
    Project,
    ResolvedAssignment,
    TeamMember,
)

logger = logging.getLogger("innoflow-core.hierarchy")

DEMO_DATA_PATH = Path(__file__).parent / "data" / "org_chart_demo.yaml"

NEW_NODE_TITLE = "New Role"
NEW_NODE_DESCRIPTION = "Define the responsibilities for this role"
LEVEL_SPACING = 150  # vertical canvas offset per level


def find_parent_cycle(nodes: Iterable[HierarchyNode]) -> Optional[list[str]]:
    """
    Find a cycle in the parent references, if there is one.

    Args:
        nodes: Flat node list

    Returns:
        Node ids along the cycle, starting and ending with the same id, or None
    """
    parent_of = {node.id: node.parent_id for node in nodes}
    cleared: set[str] = set()

    for start in parent_of:
        path: list[str] = []
        on_path: set[str] = set()
        current: Optional[str] = start
        while current is not None and current in parent_of and current not in cleared:
            if current in on_path:
                cycle_start = path.index(current)
                return path[cycle_start:] + [current]
            path.append(current)
            on_path.add(current)
            current = parent_of[current]
        cleared.update(path)

    return None


def build_hierarchy_tree(
    nodes: Iterable[HierarchyNode],
    assignments: Iterable[MemberAssignment],
    members: Iterable[TeamMember],
) -> list[HierarchyNodeWithAssignments]:
    """
    Project the flat node and assignment lists into a forest.

    Each node gets its assignments joined to the member record (assignments
    whose member is unknown are discarded) and a fresh child list. Roots are
    the nodes with ``parent_id=None``, in input order.

    Args:
        nodes: Flat node list
        assignments: Flat (node, member) assignment list
        members: Team roster used to resolve assignments

    Returns:
        Root nodes with nested children
    """
    nodes = list(nodes)
    assignments = list(assignments)

    members_by_id: dict[str, TeamMember] = {}
    for member in members:
        members_by_id.setdefault(member.id, member)

    node_map: dict[str, HierarchyNodeWithAssignments] = {}
    for node in nodes:
        resolved = [
            ResolvedAssignment(**assignment.model_dump(), member=members_by_id[assignment.team_member_id])
            for assignment in assignments
            if assignment.hierarchy_node_id == node.id and assignment.team_member_id in members_by_id
        ]
        node_map[node.id] = HierarchyNodeWithAssignments(**node.model_dump(), assignments=resolved, children=[])

    roots: list[HierarchyNodeWithAssignments] = []
    orphans: list[str] = []
    for node in node_map.values():
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = node_map.get(node.parent_id)
        if parent is not None:
            parent.children.append(node)
        else:
            orphans.append(node.id)

    if orphans:
        logger.debug(f"Dropped {len(orphans)} orphan node(s) from hierarchy: {', '.join(orphans)}")

    cycle = find_parent_cycle(nodes)
    if cycle:
        logger.debug(f"Parent cycle left out of hierarchy: {' -> '.join(cycle)}")

    return roots


class HierarchyWorkspace:
    """
    Mutable org-chart state for one project.

    Every mutation replaces the node/assignment list instead of editing it in
    place, so ``reset`` can hand back the original snapshot untouched.
    """

    def __init__(
        self,
        project: Project,
        team_members: Iterable[TeamMember],
        nodes: Iterable[HierarchyNode],
        assignments: Iterable[MemberAssignment],
    ):
        self.project = project
        self.team_members: list[TeamMember] = list(team_members)
        self._initial_nodes: list[HierarchyNode] = list(nodes)
        self._initial_assignments: list[MemberAssignment] = list(assignments)
        self.nodes: list[HierarchyNode] = self._initial_nodes
        self.assignments: list[MemberAssignment] = self._initial_assignments

        # add_node only attaches to existing nodes; cycles can only arrive with the initial data
        cycle = find_parent_cycle(self._initial_nodes)
        if cycle:
            logger.warning(f"Parent cycle in hierarchy data, these nodes will not be shown: {' -> '.join(cycle)}")

    @classmethod
    def from_yaml(cls, path: Path = DEMO_DATA_PATH) -> "HierarchyWorkspace":
        """Load a workspace from a YAML fixture.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        if not path.exists():
            raise FileNotFoundError(f"Hierarchy data not found: {path}")

        data = yaml.safe_load(path.read_text()) or {}
        workspace = cls(
            project=Project.model_validate(data["project"]),
            team_members=[TeamMember.model_validate(m) for m in data.get("team_members", [])],
            nodes=[HierarchyNode.model_validate(n) for n in data.get("hierarchy_nodes", [])],
            assignments=[MemberAssignment.model_validate(a) for a in data.get("member_assignments", [])],
        )
        logger.info(
            f"Loaded hierarchy '{workspace.project.name}': {len(workspace.nodes)} nodes, "
            f"{len(workspace.team_members)} members, {len(workspace.assignments)} assignments"
        )
        return workspace

    def tree(self) -> list[HierarchyNodeWithAssignments]:
        return build_hierarchy_tree(self.nodes, self.assignments, self.team_members)

    def find_node(self, node_id: str) -> Optional[HierarchyNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def assign_member(self, node_id: str, member_id: str) -> Optional[MemberAssignment]:
        """
        Assign a member to a node.

        Returns:
            The new assignment, or None if the pair was already assigned
        """
        existing = next(
            (a for a in self.assignments if a.hierarchy_node_id == node_id and a.team_member_id == member_id),
            None,
        )
        if existing is not None:
            return None

        assignment = MemberAssignment(
            id=f"ma-{uuid4().hex}",
            hierarchy_node_id=node_id,
            team_member_id=member_id,
            assigned_at=datetime.utcnow(),
        )
        self.assignments = [*self.assignments, assignment]
        logger.info(f"Assigned member {member_id} to node {node_id}")
        return assignment

    def unassign_member(self, node_id: str, member_id: str) -> int:
        """Remove every assignment of ``member_id`` to ``node_id``. Returns the number removed."""
        remaining = [
            a for a in self.assignments
            if not (a.hierarchy_node_id == node_id and a.team_member_id == member_id)
        ]
        removed = len(self.assignments) - len(remaining)
        self.assignments = remaining
        if removed:
            logger.info(f"Removed member {member_id} from node {node_id}")
        return removed

    def add_node(self, parent_id: Optional[str] = None) -> HierarchyNode:
        """Append a placeholder role under ``parent_id`` (or as a new root)."""
        parent = self.find_node(parent_id) if parent_id is not None else None
        level = parent.level + 1 if parent is not None else 0
        now = datetime.utcnow()

        node = HierarchyNode(
            id=f"hn-{uuid4().hex}",
            project_id=self.project.id,
            parent_id=parent_id,
            role_title=NEW_NODE_TITLE,
            role_description=NEW_NODE_DESCRIPTION,
            position_x=0,
            position_y=level * LEVEL_SPACING,
            level=level,
            created_at=now,
            updated_at=now,
        )
        self.nodes = [*self.nodes, node]
        logger.info(f"Added node {node.id} under {parent_id or 'root'} at level {level}")
        return node

    def reset(self) -> None:
        """Restore the nodes and assignments loaded at construction."""
        self.nodes = self._initial_nodes
        self.assignments = self._initial_assignments
        logger.info(f"Reset hierarchy '{self.project.name}'")

    def assigned_member_ids(self) -> set[str]:
        return {a.team_member_id for a in self.assignments}

    def roster(self) -> tuple[list[TeamMember], list[TeamMember]]:
        """Split the team into (available, assigned) members."""
        assigned_ids = self.assigned_member_ids()
        available = [m for m in self.team_members if m.id not in assigned_ids]
        assigned = [m for m in self.team_members if m.id in assigned_ids]
        return available, assigned
