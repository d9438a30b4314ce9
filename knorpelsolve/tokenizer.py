"""
Tokenizer for the expression language.

Each literal segment of a template is scanned on its own, and every operand
between two segments becomes a single token. Lexical grammar of a segment:

    NUMBER      [+-]?\\d+(\\.\\d+)?
    OPERATOR    + - * /
    LPAREN      (
    RPAREN      )
    COMPARATOR  <= == >=      (constraints only)

Whitespace around tokens is skipped. A signed number that directly follows
a complete operand gets an implicit '+' in front, so ``"{} -3"`` reads as
``x + -3`` rather than two operands in a row.
"""
import re
from enum import Enum
from typing import Iterator, NamedTuple, Optional

from .errors import LexicalError
from .modeling import NUMBER_TYPES, to_expression
from .template import Template


class TokenKind(Enum):
    NUMBER = 'number'
    EXPRESSION = 'expression'
    OPERATOR = 'operator'
    LPAREN = '('
    RPAREN = ')'
    COMPARATOR = 'comparator'


class Token(NamedTuple):
    """
    A lexical token.

    ``segment`` is the index of the literal segment the token was scanned
    from, and ``column`` its index within that segment. Operand tokens have
    ``column`` set to None and ``segment`` set to the operand index.
    """
    kind: TokenKind
    value: object
    segment: int
    column: Optional[int]

    @property
    def location(self) -> str:
        if self.column is None:
            return f"operand {self.segment}"
        return f"index {self.column} in part {self.segment}"

    def __str__(self):
        if self.kind in (TokenKind.NUMBER, TokenKind.EXPRESSION):
            return f"{self.value!r} at {self.location}"
        return f"'{self.value}' at {self.location}"


_SCANNER = re.compile(
    r"\s*(?:"
    r"(?P<number>[+-]?\d+(?:\.\d+)?)"
    r"|(?P<operator>[-+*/])"
    r"|(?P<paren>[()])"
    r"|(?P<comparator><=|==|>=)"
    r"|(?P<rest>\S.*)"
    r")\s*",
    re.DOTALL,
)


def tokenize(template: Template, constraint: bool = False) -> Iterator[Token]:
    """
    Scan a template into tokens.

    Parameters
    ----------
    template : Template
        Source to scan
    constraint : bool, optional
        Whether comparators are allowed (default: False)

    Yields
    ------
    Token
        Tokens in source order

    Raises
    ------
    LexicalError
        On a character that starts no token
    """
    needs_op = False
    for idx, segment in enumerate(template.segments):
        pos = 0
        while pos < len(segment):
            match = _SCANNER.match(segment, pos)
            if match is None:
                # only whitespace left
                break
            pos = match.end()
            group = match.lastgroup
            value = match.group(group)
            column = match.start(group)

            if group == 'number':
                if needs_op and value[0] in '+-':
                    yield Token(TokenKind.OPERATOR, '+', idx, column)
                yield Token(TokenKind.NUMBER, float(value), idx, column)
                needs_op = True
            elif group == 'operator':
                needs_op = False
                yield Token(TokenKind.OPERATOR, value, idx, column)
            elif group == 'paren':
                if value == '(':
                    needs_op = False
                    yield Token(TokenKind.LPAREN, value, idx, column)
                else:
                    needs_op = True
                    yield Token(TokenKind.RPAREN, value, idx, column)
            elif group == 'comparator' and constraint:
                needs_op = False
                yield Token(TokenKind.COMPARATOR, value, idx, column)
            else:
                raise LexicalError(value[0], column, segment, template.substituted())

        if idx < len(template.operands):
            operand = template.operands[idx]
            needs_op = True
            if isinstance(operand, NUMBER_TYPES):
                yield Token(TokenKind.NUMBER, operand, idx, None)
            else:
                yield Token(TokenKind.EXPRESSION, to_expression(operand), idx, None)
