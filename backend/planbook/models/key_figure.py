import json

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base


class KeyFigure(Base):
    __tablename__ = "key_figures"
    __table_args__ = (
        CheckConstraint("kf_type IN ('base', 'calculated')", name="ck_key_figures_type"),
        CheckConstraint(
            "aggregation IS NULL OR aggregation IN ('sum', 'avg', 'min', 'max', 'count')",
            name="ck_key_figures_aggregation",
        ),
        CheckConstraint(
            "(kf_type = 'calculated' AND formula IS NOT NULL) OR (kf_type = 'base' AND formula IS NULL)",
            name="ck_key_figures_formula_by_type",
        ),
        Index("ix_key_figures_type_active", "kf_type", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    kf_type = Column(String(12), nullable=False, default="base")
    unit = Column(String(30), nullable=True)
    display_format = Column(String(30), nullable=True)

    source_table = Column(String(100), nullable=True)
    source_field = Column(String(100), nullable=True)
    aggregation = Column(String(10), nullable=True, default="sum")

    formula = Column(Text, nullable=True)
    formula_ast_json = Column(Text, nullable=True)
    dependencies_json = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_calculated(self) -> bool:
        return self.kf_type == "calculated"

    @property
    def dependencies(self) -> list:
        return list(json.loads(self.dependencies_json or "[]"))
