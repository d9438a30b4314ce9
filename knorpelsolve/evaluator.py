"""
Evaluation of parsed sources into affine expressions.

Numbers stay bare numbers while both sides of an operation are constant, so
``"2 * 3"`` folds to ``6`` before anything is lifted. Products and quotients
are checked for linearity.
"""
import logging
from typing import Tuple, Union

from .errors import NonConstantDivisorError, NonLinearMultiplicationError
from .modeling import (
    NUMBER_TYPES,
    Expression,
    _ieee_divide,
    add,
    divide,
    scale,
    sub,
    to_expression,
)
from .parser import BinaryOp, ExpressionLeaf, Literal, Node, Parser
from .template import Template
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

Value = Union[float, Expression]


def evaluate(node: Node) -> Value:
    """
    Fold a syntax tree bottom-up.

    Returns a bare number if the tree is fully constant, otherwise an
    Expression.

    Raises
    ------
    NonLinearMultiplicationError
        If both factors of a product are non-constant
    NonConstantDivisorError
        If a divisor is non-constant
    """
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ExpressionLeaf):
        return node.expression
    if isinstance(node, BinaryOp):
        return _apply(node.op, evaluate(node.left), evaluate(node.right))
    raise TypeError(f"Cannot evaluate {node!r}")


def _apply(op: str, left: Value, right: Value) -> Value:
    left_is_number = isinstance(left, NUMBER_TYPES)
    right_is_number = isinstance(right, NUMBER_TYPES)

    if op == '+':
        return left + right if left_is_number and right_is_number else add(left, right)
    if op == '-':
        return left - right if left_is_number and right_is_number else sub(left, right)
    if op == '*':
        if left_is_number and right_is_number:
            return left * right
        if left_is_number:
            return scale(left, right)
        if right_is_number:
            return scale(right, left)
        raise NonLinearMultiplicationError()
    if op == '/':
        if not right_is_number:
            raise NonConstantDivisorError()
        return _ieee_divide(left, right) if left_is_number else divide(left, right)
    raise ValueError(f"Unknown operator: {op}")


def evaluate_expression(template: Template) -> Expression:
    """Tokenize, parse and evaluate an expression source"""
    tree = Parser(tokenize(template)).parse_expression()
    result = to_expression(evaluate(tree))
    logger.debug(f"Evaluated {template!r} to {result!r}")
    return result


def evaluate_constraint(template: Template) -> Tuple[Expression, str, Expression]:
    """
    Tokenize, parse and evaluate a constraint source.

    Returns
    -------
    tuple
        ``(left, comparator, right)`` with both sides as Expressions
    """
    comparison = Parser(tokenize(template, constraint=True)).parse_constraint()
    left = to_expression(evaluate(comparison.left))
    right = to_expression(evaluate(comparison.right))
    return left, comparison.comparator, right
