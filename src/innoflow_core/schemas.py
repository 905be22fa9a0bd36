"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .models import ItemStatus, RygStatus


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# Item Schemas

_EDITABLE_TEXT_FIELDS = (
    "current_solution",
    "resource_assessment",
    "kpi_name",
    "kpi_baseline",
    "kpi_target",
    "risk_note",
    "rbac_note",
    "artefact_url",
    "stopp_reason",
)

# F1 fields are set at registration and never edited afterwards
_OPTIONAL_TEXT_FIELDS = ("user_ctx", "min_solution", *_EDITABLE_TEXT_FIELDS)


class ItemCreate(BaseModel):
    """Schema for creating a new pipeline item.

    Title and problem are required; every other text field is optional and
    blank values are stored as null.
    """

    title: str = Field(..., max_length=200)
    problem: str = Field(..., description="Problem statement (required)")
    owner_id: Optional[str] = Field(None, max_length=100, description="Defaults to the configured user")
    status: ItemStatus = ItemStatus.NEW

    user_ctx: Optional[str] = None
    min_solution: Optional[str] = None
    current_solution: Optional[str] = None
    resource_assessment: Optional[str] = None
    kpi_name: Optional[str] = Field(None, max_length=200)
    kpi_baseline: Optional[str] = Field(None, max_length=200)
    kpi_target: Optional[str] = Field(None, max_length=200)
    first_measure_due: Optional[date] = None
    risk_note: Optional[str] = None
    pii_flag: bool = False
    rbac_note: Optional[str] = None
    artefact_url: Optional[str] = Field(None, max_length=500)
    timebox_from: Optional[date] = None
    timebox_to: Optional[date] = None
    good_enough_demo: bool = False
    good_enough_measure: bool = False
    good_enough_log: bool = False
    stopp_reason: Optional[str] = None
    ryg_status: Optional[RygStatus] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "problem")
    @classmethod
    def require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator(*_OPTIONAL_TEXT_FIELDS)
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _strip_or_none(value)


class ItemUpdate(BaseModel):
    """Schema for a partial item update.

    Only fields explicitly sent are written. The F1 registration fields
    (title, problem, user_ctx, min_solution) are locked once the item exists
    and are rejected here.
    """

    status: Optional[ItemStatus] = None
    owner_id: Optional[str] = Field(None, max_length=100)
    current_solution: Optional[str] = None
    resource_assessment: Optional[str] = None
    kpi_name: Optional[str] = Field(None, max_length=200)
    kpi_baseline: Optional[str] = Field(None, max_length=200)
    kpi_target: Optional[str] = Field(None, max_length=200)
    first_measure_due: Optional[date] = None
    risk_note: Optional[str] = None
    pii_flag: Optional[bool] = None
    rbac_note: Optional[str] = None
    artefact_url: Optional[str] = Field(None, max_length=500)
    timebox_from: Optional[date] = None
    timebox_to: Optional[date] = None
    good_enough_demo: Optional[bool] = None
    good_enough_measure: Optional[bool] = None
    good_enough_log: Optional[bool] = None
    stopp_reason: Optional[str] = None
    ryg_status: Optional[RygStatus] = None
    tags: Optional[list[str]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("owner_id")
    @classmethod
    def require_owner(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator(*_EDITABLE_TEXT_FIELDS)
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return _strip_or_none(value)


class ItemStatusChange(BaseModel):
    """Schema for moving an item to another stage."""

    new_status: ItemStatus = Field(..., description="Target stage")


class ItemResponse(BaseModel):
    """Schema for full item response."""

    id: UUID
    title: str
    status: ItemStatus
    created_at: datetime
    f1_locked_at: Optional[datetime] = None
    owner_id: str
    problem: Optional[str] = None
    user_ctx: Optional[str] = None
    min_solution: Optional[str] = None
    current_solution: Optional[str] = None
    resource_assessment: Optional[str] = None
    kpi_name: Optional[str] = None
    kpi_baseline: Optional[str] = None
    kpi_target: Optional[str] = None
    first_measure_due: Optional[date] = None
    risk_note: Optional[str] = None
    pii_flag: bool = False
    rbac_note: Optional[str] = None
    artefact_url: Optional[str] = None
    timebox_from: Optional[date] = None
    timebox_to: Optional[date] = None
    good_enough_demo: bool = False
    good_enough_measure: bool = False
    good_enough_log: bool = False
    stopp_reason: Optional[str] = None
    ryg_status: Optional[RygStatus] = None
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# Comment / Audit Schemas

class CommentCreate(BaseModel):
    """Schema for adding a comment to an item."""

    content: str = Field(..., min_length=1)
    user_id: Optional[str] = Field(None, max_length=100, description="Defaults to the configured user")

    @field_validator("content")
    @classmethod
    def require_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CommentResponse(BaseModel):
    id: UUID
    item_id: UUID
    user_id: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuditLogResponse(BaseModel):
    """Schema for audit log entries."""

    id: UUID
    item_id: UUID
    user_id: str
    action: str
    old_value: Optional[dict[str, Any]] = None
    new_value: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# KPI / Report Schemas

class WeeklyKPIs(BaseModel):
    """Rolling metrics for the ISO week containing "now"."""

    f1_volume: int = Field(description="Items created in New this week")
    f1_to_f2_conversion: int = Field(description="Percent of this week's New items locked this week")
    f1_to_f2_lead_time_median: int = Field(description="Lower median of New -> Discovery lead time in days")
    ryg_status: RygStatus

    model_config = ConfigDict(use_enum_values=True)


class SitrepResponse(BaseModel):
    kpis: WeeklyKPIs
    text: str


class ItemSummaryResponse(BaseModel):
    item_id: UUID
    text: str


# Board Schemas

class ItemFilter(BaseModel):
    """Board filter state.

    ``None`` for a tri-state flag means "don't care".
    """

    this_week_only: bool = True
    owner: Optional[str] = None
    ryg_status: Optional[RygStatus] = None
    tag: Optional[str] = None
    has_demo: Optional[bool] = None
    has_measure: Optional[bool] = None
    has_log: Optional[bool] = None
    search_text: Optional[str] = None


class BoardColumn(BaseModel):
    status: ItemStatus
    label: str
    items: list[ItemResponse]
    count: int


class BoardResponse(BaseModel):
    """Kanban board: filtered, sorted columns plus KPIs over all items."""

    columns: list[BoardColumn]
    kpis: WeeklyKPIs
    owners: list[str]
    tags: list[str]


# Hierarchy Schemas

class Project(BaseModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime
    updated_at: datetime


class TeamMember(BaseModel):
    """Roster entry that can be placed on the org chart."""

    id: str
    name: str
    email: str
    photo_url: str = ""
    role_type: str = ""
    bio: str = ""
    skills: list[str] = Field(default_factory=list)
    created_at: datetime


class HierarchyNode(BaseModel):
    """A role in the org chart. ``parent_id=None`` marks a root."""

    id: str
    project_id: str
    parent_id: Optional[str] = None
    role_title: str
    role_description: str = ""
    position_x: int = 0
    position_y: int = 0
    level: int = 0
    created_at: datetime
    updated_at: datetime


class MemberAssignment(BaseModel):
    id: str
    hierarchy_node_id: str
    team_member_id: str
    assigned_at: datetime


class ResolvedAssignment(MemberAssignment):
    member: TeamMember


class HierarchyNodeWithAssignments(HierarchyNode):
    """Node decorated with its resolved assignments and derived children."""

    assignments: list[ResolvedAssignment] = Field(default_factory=list)
    children: list["HierarchyNodeWithAssignments"] = Field(default_factory=list)


class AssignmentRequest(BaseModel):
    node_id: str
    member_id: str


class NodeCreate(BaseModel):
    parent_id: Optional[str] = None


class RosterResponse(BaseModel):
    available: list[TeamMember]
    assigned: list[TeamMember]


class HierarchyResponse(BaseModel):
    project: Project
    tree: list[HierarchyNodeWithAssignments]
    assigned_member_ids: list[str]
