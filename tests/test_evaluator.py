"""Unit tests for evaluation of sources into expressions."""

import math
import types

import numpy as np
import pytest

from knorpelsolve.errors import NonConstantDivisorError, NonLinearMultiplicationError
from knorpelsolve.evaluator import evaluate, evaluate_constraint
from knorpelsolve.modeling import Expression, Variable, add, divide, scale, sub, to_expression
from knorpelsolve.parser import Comparison, Literal
from knorpelsolve.template import Template, exp


@pytest.fixture
def a():
    return Variable('a')


@pytest.fixture
def b():
    return Variable('b')


def test_sum_and_product(a, b):
    """Mixed sums and products match the combinators"""
    assert exp("2*{} + 3 - {}", a, b) == sub(add(scale(2, a), 3), b)


def test_parenthesized_quotient(a):
    """A parenthesized sum can be divided by a number"""
    assert exp("({} + 1) / 2", a) == divide(add(a, 1), 2)


def test_number_on_either_side_of_product(a):
    """Scaling works from the left and from the right"""
    assert exp("3 * {}", a) == exp("{} * 3", a) == scale(3, a)


def test_constant_source_is_folded():
    """Fully constant sources still return an Expression"""
    result = exp("2 * 3 + 1")
    assert isinstance(result, Expression)
    assert result == to_expression(7)
    assert result.is_constant()


def test_bare_numbers_until_the_end():
    """Constant subtrees evaluate to plain numbers"""
    assert evaluate(Literal(4.0)) == 4.0
    assert not isinstance(evaluate(Literal(4.0)), Expression)


def test_product_of_expressions_fails(a, b):
    """Quadratic terms are not representable"""
    with pytest.raises(NonLinearMultiplicationError):
        exp("{} * {}", a, b)
    with pytest.raises(NonLinearMultiplicationError):
        exp("({} + 1) * ({} - 1)", a, b)


def test_division_by_expression_fails(a, b):
    """Divisors must be numbers"""
    with pytest.raises(NonConstantDivisorError):
        exp("4 / {}", a)
    with pytest.raises(NonConstantDivisorError):
        exp("{} / {}", a, b)


def test_nested_sources(a):
    """Expressions built from sources can be operands of other sources"""
    inner = exp("{} + 1", a)
    outer = exp("7 * {} - 2", inner)
    assert outer.terms() == [('a', 7.0)]
    assert outer.constant == 5


def test_signed_literal_after_operand(a):
    """'{} -3' reads as a + -3"""
    assert exp("{} -3", a) == sub(a, 3)


def test_signed_literal_after_parenthesis(a):
    """A signed literal after ')' is added"""
    assert exp("({} * 2)-3", a) == sub(scale(2, a), 3)


def test_number_operands(a):
    """Interpolated numbers behave like literals"""
    assert exp("{} * {}", 2, a) == scale(2, a)
    assert exp("{} * {}", np.float64(2.0), a) == scale(2, a)
    assert exp("{} + {}", 1, 2) == to_expression(3)


def test_division_by_zero(a):
    """Division by zero does not raise"""
    assert math.isinf(exp("1 / 0").constant)
    assert math.isinf(exp("{} / 0", a).get_coefficient('a'))


def test_example_with_negative_divisor(a, b):
    """Negative literals inside parentheses"""
    result = exp("{} + 3 - ({} / (-5.5 / 2))", a, b)
    assert result.get_coefficient('a') == 1
    assert result.get_coefficient('b') == pytest.approx(2 / 5.5)
    assert result.constant == 3


def test_evaluate_constraint(a, b):
    """Constraints evaluate to both sides and the comparator"""
    left, comparator, right = evaluate_constraint(Template.from_format("{} + 2 <= {}", a, b))
    assert left == add(a, 2)
    assert comparator == '<='
    assert right == to_expression(b)


def test_comparison_node_cannot_be_evaluated():
    """Only expression trees have a value"""
    with pytest.raises(TypeError):
        evaluate(Comparison(Literal(1.0), '<=', Literal(2.0)))


def test_exp_of_values(a):
    """exp() lifts single values"""
    e = a + 1
    assert exp(e) is e
    assert exp(a) == to_expression(a)
    assert exp(42) == exp("40 + 2")


def test_exp_operands_need_source(a, b):
    """Operands are only accepted with a format string"""
    with pytest.raises(TypeError):
        exp(a, b)


def test_exp_of_template(a):
    """Ready templates are accepted"""
    assert exp(Template(["", " * 2"], [a])) == scale(2, a)


def test_exp_of_template_string(a):
    """Objects shaped like string.templatelib.Template are accepted"""
    template_string = types.SimpleNamespace(strings=("", " + 1"), values=(a,))
    assert exp(template_string) == add(a, 1)
