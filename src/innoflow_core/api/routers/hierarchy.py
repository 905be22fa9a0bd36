"""Org-chart hierarchy API router.

State lives in memory for the lifetime of the process; ``/reset`` restores
the bundled demo data.
"""
from fastapi import APIRouter, Depends, status

from ...hierarchy import HierarchyWorkspace
from ...schemas import (
    AssignmentRequest,
    HierarchyNode,
    HierarchyResponse,
    NodeCreate,
    RosterResponse,
)
from ..dependencies import get_hierarchy_workspace

router = APIRouter(tags=["hierarchy"])


def hierarchy_response(workspace: HierarchyWorkspace) -> HierarchyResponse:
    return HierarchyResponse(
        project=workspace.project,
        tree=workspace.tree(),
        assigned_member_ids=sorted(workspace.assigned_member_ids()),
    )


@router.get("/", response_model=HierarchyResponse)
async def get_hierarchy(workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace)):
    """Current org chart as a nested tree."""
    return hierarchy_response(workspace)


@router.get("/members", response_model=RosterResponse)
async def get_roster(workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace)):
    """Team members split into available and assigned."""
    available, assigned = workspace.roster()
    return RosterResponse(available=available, assigned=assigned)


@router.post("/assignments", response_model=HierarchyResponse)
async def assign_member(
    data: AssignmentRequest,
    workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace),
):
    """Assign a member to a node. Assigning an existing pair is a no-op."""
    workspace.assign_member(data.node_id, data.member_id)
    return hierarchy_response(workspace)


@router.delete("/assignments", response_model=HierarchyResponse)
async def unassign_member(
    node_id: str,
    member_id: str,
    workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace),
):
    """Remove a member from a node. Unknown pairs are a no-op."""
    workspace.unassign_member(node_id, member_id)
    return hierarchy_response(workspace)


@router.post("/nodes", response_model=HierarchyNode, status_code=status.HTTP_201_CREATED)
async def add_node(
    data: NodeCreate,
    workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace),
):
    """Add a placeholder role under ``parent_id`` (or a new root)."""
    return workspace.add_node(data.parent_id)


@router.post("/reset", response_model=HierarchyResponse)
async def reset_hierarchy(workspace: HierarchyWorkspace = Depends(get_hierarchy_workspace)):
    """Restore the initial org chart."""
    workspace.reset()
    return hierarchy_response(workspace)
