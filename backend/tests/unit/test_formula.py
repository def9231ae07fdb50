from decimal import Decimal

import pytest

from planbook.core.exceptions import InvalidFormulaException
from planbook.engine.formula import (
    BinaryOp,
    Literal,
    Reference,
    evaluate,
    from_dict,
    is_valid_code,
    parse_formula,
    references,
    render,
    to_dict,
)


def test_parse_respects_precedence():
    tree = parse_formula("KF_001 + KF_002 * 0.8")
    assert tree == BinaryOp(
        "+",
        Reference("KF_001"),
        BinaryOp("*", Reference("KF_002"), Literal(Decimal("0.8"))),
    )


def test_references_ignore_literals_and_operators():
    assert references(parse_formula("(A + B) / 2 - A * 3")) == {"A", "B"}


def test_evaluate_substitutes_dependency_values():
    tree = parse_formula("KF_001 + KF_002 * 0.8")
    assert evaluate(tree, {"KF_001": Decimal("100"), "KF_002": Decimal("50")}) == Decimal("140")


def test_division_by_zero_yields_zero():
    assert evaluate(parse_formula("A / B"), {"A": Decimal("10"), "B": Decimal("0")}) == Decimal("0")


def test_assignment_prefix_is_tolerated():
    assert references(parse_formula("KF_003 = KF_001 + KF_002")) == {"KF_001", "KF_002"}


def test_unary_minus():
    assert evaluate(parse_formula("-A + 5"), {"A": Decimal("2")}) == Decimal("3")
    assert parse_formula("-2") == Literal(Decimal("-2"))


@pytest.mark.parametrize("text", ["", "A +", "max(A, B)", "A ** 2", "A.b", "'x'", "A if B else 1"])
def test_invalid_formulas_rejected(text):
    with pytest.raises(InvalidFormulaException):
        parse_formula(text)


def test_render_keeps_grouping():
    assert render(parse_formula("(A + B) * 2")) == "(A + B) * 2"
    assert render(parse_formula("A - (B - C)")) == "A - (B - C)"


def test_stored_tree_rebuilds_identically():
    tree = parse_formula("(DEMAND - STOCK) / 4")
    assert from_dict(to_dict(tree)) == tree


def test_code_validation():
    assert is_valid_code("KF_001")
    assert not is_valid_code("1KF")
    assert not is_valid_code("lambda")
