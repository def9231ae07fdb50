"""
Pure planning-engine core: calendar buckets, formula trees, dependency graph.

Nothing in this package touches the database; services feed it plain values.
"""
from planbook.engine.formula import BinaryOp, Literal, Reference, parse_formula
from planbook.engine.graph import DependencyGraph
from planbook.engine.periods import LEVELS, TimePeriod, resolve_horizon

__all__ = [
    "BinaryOp",
    "Literal",
    "Reference",
    "parse_formula",
    "DependencyGraph",
    "LEVELS",
    "TimePeriod",
    "resolve_horizon",
]
