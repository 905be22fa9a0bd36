"""SQLAlchemy database models."""
from datetime import datetime
from uuid import uuid4
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    Enum,
    Boolean,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

# Base class for all models
Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite for development and tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class ItemStatus(str, enum.Enum):
    """Pipeline stage enum.

    Lifecycle: New -> Discovery -> Development -> Done
    Stored as the literal values status1..status4.
    """

    NEW = "status1"          # F1: idea registered
    DISCOVERY = "status2"    # F2: problem/solution discovery
    DEVELOPMENT = "status3"  # F3: building the minimal solution
    DONE = "status4"         # Terminal: delivered or stopped

    @property
    def label(self) -> str:
        return self.name.capitalize()


class RygStatus(str, enum.Enum):
    """Traffic-light status enum."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class AuditAction(str, enum.Enum):
    """Audit log action labels."""

    ITEM_UPDATE = "item_update"
    STATUS_CHANGE = "status_change"
    ITEM_DELETE = "item_delete"


class Item(Base):
    """
    Pipeline item (an idea moving through the four fixed stages).

    ``f1_locked_at`` records when the item first left the New stage and drives
    the conversion and lead-time KPIs.
    """

    __tablename__ = "items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String(200), nullable=False)
    status = Column(
        Enum(ItemStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=ItemStatus.NEW,
        index=True
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    f1_locked_at = Column(DateTime, nullable=True)
    owner_id = Column(String(100), nullable=False, index=True)

    # Problem / solution framing
    problem = Column(Text, nullable=True)
    user_ctx = Column(Text, nullable=True)
    min_solution = Column(Text, nullable=True)
    current_solution = Column(Text, nullable=True)
    resource_assessment = Column(Text, nullable=True)

    # KPI descriptor
    kpi_name = Column(String(200), nullable=True)
    kpi_baseline = Column(String(200), nullable=True)
    kpi_target = Column(String(200), nullable=True)
    first_measure_due = Column(Date, nullable=True)

    # Risk and compliance notes
    risk_note = Column(Text, nullable=True)
    pii_flag = Column(Boolean, nullable=False, default=False)
    rbac_note = Column(Text, nullable=True)
    artefact_url = Column(String(500), nullable=True)

    # Time-box window
    timebox_from = Column(Date, nullable=True)
    timebox_to = Column(Date, nullable=True)

    # "Good enough" completion criteria
    good_enough_demo = Column(Boolean, nullable=False, default=False)
    good_enough_measure = Column(Boolean, nullable=False, default=False)
    good_enough_log = Column(Boolean, nullable=False, default=False)
    stopp_reason = Column(Text, nullable=True)

    ryg_status = Column(
        Enum(RygStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=True
    )
    tags = Column(JSONType, nullable=False, default=list)

    # Relationships
    comments = relationship(
        "Comment",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    def __repr__(self) -> str:
        return f"<Item {self.id}: {self.status.value} - {self.title[:30]}>"


class Comment(Base):
    """Append-only discussion entry on an item."""

    __tablename__ = "comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    item = relationship("Item", back_populates="comments")

    def __repr__(self) -> str:
        return f"<Comment {self.id} on {self.item_id}>"


class AuditLog(Base):
    """
    Item audit trail.

    Written after every item update, status change and delete. ``item_id`` is
    not a foreign key so entries outlive the item they describe.
    """

    __tablename__ = "audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    item_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    user_id = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)
    old_value = Column(JSONType, nullable=True)
    new_value = Column(JSONType, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog {self.item_id}: {self.action} at {self.created_at}>"
