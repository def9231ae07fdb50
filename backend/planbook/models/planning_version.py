from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base


class PlanningVersion(Base):
    __tablename__ = "planning_versions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'active', 'locked', 'archived')",
            name="ck_planning_versions_status",
        ),
        CheckConstraint(
            "status <> 'locked' OR locked_at IS NOT NULL",
            name="ck_planning_versions_locked_at",
        ),
        Index("ix_planning_versions_status", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    base_version_id = Column(
        Integer,
        ForeignKey("planning_versions.id", ondelete="SET NULL"),
        nullable=True,
    )
    status = Column(String(10), nullable=False, default="draft")
    created_by = Column(String(100), nullable=True)
    locked_at = Column(DateTime, nullable=True)
    locked_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_writable(self) -> bool:
        return self.status not in ("locked", "archived")
