"""
Interpolated sources for the expression language.

A source is a sequence of literal text segments with already-known operands
(numbers, variables or expressions) between them. Python has no tagged
template literals, so sources are written as format strings with ``{}``
placeholders:

>>> exp("{} + 3 - ({} / (-5.5 / 2))", a, b)
>>> exp("7 * {} - 2", other)

Python 3.14 template strings (``t"{a} + 3"``) are accepted as well.
"""
from typing import Sequence, Tuple

from .modeling import NUMBER_TYPES, Expression, Operand, Variable, to_expression


PLACEHOLDER = '{}'


class Template:
    """
    Literal segments interleaved with operands.

    Parameters
    ----------
    segments : sequence of str
        Literal text, one more than there are operands
    operands : sequence of number, Variable or Expression
        Values inserted between consecutive segments

    Examples
    --------
    >>> t = Template(["", " + 2 <= ", ""], [a, b])
    >>> t == Template.from_format("{} + 2 <= {}", a, b)
    True
    """

    def __init__(self, segments: Sequence[str], operands: Sequence[Operand]):
        self.segments: Tuple[str, ...] = tuple(segments)
        self.operands: Tuple[Operand, ...] = tuple(operands)
        if len(self.segments) != len(self.operands) + 1:
            raise ValueError(
                f"Expected {len(self.operands) + 1} segments for "
                f"{len(self.operands)} operands, got {len(self.segments)}"
            )

    @classmethod
    def from_format(cls, source: str, *operands: Operand) -> 'Template':
        """Split ``source`` at every ``{}`` and pair it with ``operands``"""
        return cls(source.split(PLACEHOLDER), operands)

    @classmethod
    def coerce(cls, source, operands: Sequence[Operand] = ()) -> 'Template':
        """
        Build a Template from any supported source form.

        Parameters
        ----------
        source : str, Template or string.templatelib.Template
            Format string (paired with ``operands``) or a ready template
        operands : sequence, optional
            Operands for a format string

        Raises
        ------
        TypeError
            If ``source`` is not a supported source, or operands are passed
            together with a ready template
        """
        if isinstance(source, str):
            return cls.from_format(source, *operands)
        if isinstance(source, Template) or is_template_string(source):
            if operands:
                raise TypeError("Operands can only be passed with a format string")
            if isinstance(source, Template):
                return source
            return cls(source.strings, source.values)
        raise TypeError(f"Cannot interpret {type(source).__name__} as a template")

    def substituted(self) -> str:
        """The source with every operand written in place, for error messages"""
        parts = []
        for idx, segment in enumerate(self.segments):
            parts.append(segment)
            if idx < len(self.operands):
                parts.append(_describe_operand(self.operands[idx]))
        return ''.join(parts)

    def __eq__(self, other):
        if not isinstance(other, Template):
            return NotImplemented
        return (self.segments == other.segments
                and len(self.operands) == len(other.operands)
                and all(x is y for x, y in zip(self.operands, other.operands)))

    __hash__ = None

    def __repr__(self):
        return f"Template({self.substituted()!r})"


def _describe_operand(value) -> str:
    if isinstance(value, Variable):
        return value.name
    if isinstance(value, NUMBER_TYPES):
        return str(value)
    return '<exp>'


def is_template_string(value) -> bool:
    """Whether ``value`` looks like a ``string.templatelib.Template``"""
    return (not isinstance(value, (str, Template))
            and hasattr(value, 'strings') and hasattr(value, 'values')
            and isinstance(getattr(value, 'strings'), tuple))


def is_source(value) -> bool:
    """Whether ``value`` is something :meth:`Template.coerce` accepts"""
    return isinstance(value, (str, Template)) or is_template_string(value)


def exp(source, *operands: Operand) -> Expression:
    """
    Build an Expression from a source or from a single value.

    Parameters
    ----------
    source : str, Template, number, Variable or Expression
        A format string with ``{}`` placeholders for ``operands``, a
        template, or a value to lift with :func:`to_expression`
    *operands : number, Variable or Expression
        Operands for a format string

    Returns
    -------
    Expression
        Canonical expression, also for fully constant sources

    Examples
    --------
    >>> a = problem.variable('a')
    >>> b = problem.variable('b')
    >>> expression = exp("{} + 3 - ({} / (-5.5 / 2))", a, b)
    >>> other = exp("7 * {} - 2", expression)
    >>> exp(42) == exp("40 + 2")
    True
    """
    if is_source(source):
        from .evaluator import evaluate_expression
        return evaluate_expression(Template.coerce(source, operands))
    if operands:
        raise TypeError("exp() takes operands only together with a format string")
    return to_expression(source)
