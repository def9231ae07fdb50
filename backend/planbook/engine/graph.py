"""
Calculated key figure dependency graph.

Edges point from a calculated figure to the codes its formula references.
Base figures appear only as edge targets (or with an empty edge set).
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Set

from planbook.core.exceptions import CyclicFormula


class DependencyGraph:

    def __init__(self, edges: Optional[Mapping[str, Iterable[str]]] = None):
        self._edges: Dict[str, Set[str]] = {code: set(deps) for code, deps in (edges or {}).items()}

    def __contains__(self, code: str) -> bool:
        return code in self._edges

    @property
    def codes(self) -> Set[str]:
        return set(self._edges)

    def dependencies_of(self, code: str) -> Set[str]:
        return set(self._edges.get(code, set()))

    def dependents_of(self, code: str) -> Set[str]:
        return {src for src, deps in self._edges.items() if code in deps}

    def add(self, code: str, dependencies: Iterable[str]) -> None:
        """Replace ``code``'s edges; raise CyclicFormula and leave the graph untouched on a cycle."""
        previous = self._edges.get(code)
        self._edges[code] = set(dependencies)
        cycle = self.find_cycle(code)
        if cycle:
            if previous is None:
                del self._edges[code]
            else:
                self._edges[code] = previous
            raise CyclicFormula(code, cycle)

    def remove(self, code: str) -> None:
        self._edges.pop(code, None)

    def find_cycle(self, start: str) -> Optional[List[str]]:
        """DFS from ``start`` with an explicit recursion stack; returns the cycle path if any."""
        stack: List[str] = []
        on_stack: Set[str] = set()
        done: Set[str] = set()

        def visit(code: str) -> Optional[List[str]]:
            stack.append(code)
            on_stack.add(code)
            for dep in sorted(self._edges.get(code, ())):
                if dep in on_stack:
                    return stack[stack.index(dep):] + [dep]
                if dep not in done:
                    found = visit(dep)
                    if found:
                        return found
            stack.pop()
            on_stack.discard(code)
            done.add(code)
            return None

        return visit(start)

    def transitive_dependencies(self, code: str) -> Set[str]:
        seen: Set[str] = set()
        pending = list(self._edges.get(code, ()))
        while pending:
            dep = pending.pop()
            if dep in seen:
                continue
            seen.add(dep)
            pending.extend(self._edges.get(dep, ()))
        return seen

    def topological_order(self, codes: Iterable[str]) -> List[str]:
        """
        ``codes`` plus everything they depend on, dependencies first.
        Independent figures are ordered by code so the result is deterministic.
        """
        ordered: List[str] = []
        placed: Set[str] = set()
        visiting: Set[str] = set()

        def place(code: str) -> None:
            if code in placed:
                return
            if code in visiting:
                raise CyclicFormula(code, [code, code])
            visiting.add(code)
            for dep in sorted(self._edges.get(code, ())):
                place(dep)
            visiting.discard(code)
            placed.add(code)
            ordered.append(code)

        for code in sorted(set(codes)):
            place(code)
        return ordered
