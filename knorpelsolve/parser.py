"""
Recursive-descent parser for the expression language.

Grammar::

    expression := sum
    sum        := product (("+" | "-") product)*
    product    := primary (("*" | "/") primary)*
    primary    := NUMBER | EXPRESSION | "(" sum ")"
    constraint := sum COMPARATOR sum

Both binary tiers are left-associative. There is no unary minus; negative
numbers are handled by the tokenizer.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .errors import (
    ChainedComparatorError,
    MissingComparatorError,
    TrailingTokensError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
    UnmatchedParenthesisError,
)
from .modeling import Expression
from .tokenizer import Token, TokenKind


@dataclass(frozen=True)
class Literal:
    """A bare number"""
    value: float


@dataclass(frozen=True)
class ExpressionLeaf:
    """An operand that is not a number"""
    expression: Expression


@dataclass(frozen=True)
class BinaryOp:
    """``left op right`` for op in + - * /"""
    op: str
    left: 'Node'
    right: 'Node'


@dataclass(frozen=True)
class Comparison:
    """Top level of a constraint: ``left comparator right``"""
    left: 'Node'
    comparator: str
    right: 'Node'


Node = Union[Literal, ExpressionLeaf, BinaryOp]


class Parser:
    """
    Builds a syntax tree from a token stream.

    Tokens are pulled lazily, so lexical errors surface at the point where
    the parser reaches them.

    Parameters
    ----------
    tokens : iterable of Token
        Output of :func:`knorpelsolve.tokenizer.tokenize`
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._head: Optional[Token] = next(self._tokens, None)

    def _peek(self) -> Optional[Token]:
        return self._head

    def _next(self) -> Optional[Token]:
        token = self._head
        self._head = next(self._tokens, None)
        return token

    def _peek_operator(self, *ops: str) -> bool:
        head = self._head
        return head is not None and head.kind is TokenKind.OPERATOR and head.value in ops

    def parse_expression(self) -> Node:
        """Parse a complete expression; the stream must end after it"""
        node = self._sum()
        trailing = self._peek()
        if trailing is not None:
            raise TrailingTokensError(
                f"Unexpected token at end of expression: {trailing}", trailing
            )
        return node

    def parse_constraint(self) -> Comparison:
        """Parse ``sum COMPARATOR sum``; the stream must end after it"""
        left = self._sum()
        comparator = self._next()
        if comparator is None:
            raise MissingComparatorError(
                "Expected one of '<=', '==', '>=' but reached the end of the constraint"
            )
        if comparator.kind is not TokenKind.COMPARATOR:
            raise MissingComparatorError(
                f"Expected one of '<=', '==', '>=' but got unexpected token: {comparator}",
                comparator,
            )
        repeated = self._peek()
        if repeated is not None and repeated.kind is TokenKind.COMPARATOR:
            raise ChainedComparatorError(
                f"Constraints take exactly one comparator, got another: {repeated}",
                repeated,
            )
        right = self._sum()
        trailing = self._peek()
        if trailing is not None:
            if trailing.kind is TokenKind.COMPARATOR:
                raise ChainedComparatorError(
                    f"Constraints take exactly one comparator, got another: {trailing}",
                    trailing,
                )
            raise TrailingTokensError(
                f"Unexpected token at end of constraint: {trailing}", trailing
            )
        return Comparison(left, comparator.value, right)

    def _sum(self) -> Node:
        node = self._product()
        while self._peek_operator('+', '-'):
            op = self._next().value
            node = BinaryOp(op, node, self._product())
        return node

    def _product(self) -> Node:
        node = self._primary()
        while self._peek_operator('*', '/'):
            op = self._next().value
            node = BinaryOp(op, node, self._primary())
        return node

    def _primary(self) -> Node:
        token = self._next()
        if token is None:
            raise UnexpectedEndOfInputError("Unexpected end of expression")

        if token.kind is TokenKind.NUMBER:
            return Literal(token.value)
        if token.kind is TokenKind.EXPRESSION:
            return ExpressionLeaf(token.value)
        if token.kind is TokenKind.LPAREN:
            node = self._sum()
            closing = self._next()
            if closing is None:
                raise UnmatchedParenthesisError(
                    f"Expected ')' to close {token} but reached the end"
                )
            if closing.kind is TokenKind.COMPARATOR:
                raise UnexpectedTokenError(
                    f"Comparators are only allowed at the top level of a constraint: {closing}",
                    closing,
                )
            if closing.kind is not TokenKind.RPAREN:
                raise UnmatchedParenthesisError(
                    f"Expected ')' to close {token} but got unexpected token: {closing}",
                    closing,
                )
            return node
        raise UnexpectedTokenError(f"Unexpected token: {token}", token)
