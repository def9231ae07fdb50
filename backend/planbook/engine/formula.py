"""
Key figure formula trees.

A formula is parsed once, at save time, into a small tagged tree
(``Literal | Reference | BinaryOp``) and stored as JSON next to the source
text. Evaluation walks the tree with already-resolved reference values; it
never re-reads the formula string.

Grammar: ``+ - * /``, parentheses, numeric literals and key figure codes.
Unary minus is folded into ``BinaryOp('*', Literal(-1), x)``.
"""
from __future__ import annotations

import ast
import keyword
import re
from dataclasses import dataclass
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any, Dict, Mapping, Set, Union

from planbook.core.exceptions import InvalidFormulaException

CODE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_OPERATORS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
}
_PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}


@dataclass(frozen=True)
class Literal:
    value: Decimal


@dataclass(frozen=True)
class Reference:
    code: str


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Literal, Reference, BinaryOp]


def is_valid_code(code: str) -> bool:
    return bool(code) and bool(CODE_PATTERN.match(code)) and not keyword.iskeyword(code)


def parse_formula(text: str) -> Node:
    expression = (text or "").strip()
    if not expression:
        raise InvalidFormulaException("Formula is empty.")
    # tolerate "KF_003 = KF_001 + KF_002" as entered in the key figure form
    if "=" in expression:
        _, expression = expression.split("=", 1)
        expression = expression.strip()
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as exc:
        raise InvalidFormulaException(
            f"Formula is not valid arithmetic: {exc.msg}.", {"formula": text, "offset": exc.offset}
        ) from exc
    return _convert(tree.body, text)


def _convert(node: ast.AST, source: str) -> Node:
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return BinaryOp(_OPERATORS[type(node.op)], _convert(node.left, source), _convert(node.right, source))
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        operand = _convert(node.operand, source)
        if isinstance(node.op, ast.UAdd):
            return operand
        if isinstance(operand, Literal):
            return Literal(-operand.value)
        return BinaryOp("*", Literal(Decimal("-1")), operand)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return Literal(Decimal(str(node.value)))
    if isinstance(node, ast.Name):
        return Reference(node.id)
    raise InvalidFormulaException(
        f"Unsupported construct '{ast.dump(node)[:40]}' in formula; only + - * /, parentheses, "
        "numbers and key figure codes are allowed.",
        {"formula": source},
    )


def references(node: Node) -> Set[str]:
    if isinstance(node, Reference):
        return {node.code}
    if isinstance(node, BinaryOp):
        return references(node.left) | references(node.right)
    return set()


def evaluate(node: Node, values: Mapping[str, Decimal]) -> Decimal:
    """Evaluate with resolved reference values. Division by zero yields 0."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Reference):
        return values[node.code]
    left = evaluate(node.left, values)
    right = evaluate(node.right, values)
    if node.op == "+":
        return left + right
    if node.op == "-":
        return left - right
    if node.op == "*":
        return left * right
    if right == 0:
        return Decimal("0")
    try:
        return left / right
    except (DivisionByZero, InvalidOperation):
        return Decimal("0")


def render(node: Node, parent_precedence: int = 0) -> str:
    if isinstance(node, Literal):
        return format(node.value.normalize(), "f") if node.value == node.value.to_integral() else str(node.value)
    if isinstance(node, Reference):
        return node.code
    precedence = _PRECEDENCE[node.op]
    # right operand of - and / binds tighter to keep a - (b - c) intact
    right_precedence = precedence + 1 if node.op in ("-", "/") else precedence
    text = f"{render(node.left, precedence)} {node.op} {render(node.right, right_precedence)}"
    return f"({text})" if precedence < parent_precedence else text


def to_dict(node: Node) -> Dict[str, Any]:
    if isinstance(node, Literal):
        return {"lit": str(node.value)}
    if isinstance(node, Reference):
        return {"ref": node.code}
    return {"op": node.op, "left": to_dict(node.left), "right": to_dict(node.right)}


def from_dict(data: Mapping[str, Any]) -> Node:
    if "lit" in data:
        return Literal(Decimal(data["lit"]))
    if "ref" in data:
        return Reference(data["ref"])
    return BinaryOp(data["op"], from_dict(data["left"]), from_dict(data["right"]))
