"""Unit tests for the problem builder and its serialization."""

import pytest

from knorpelsolve import (
    DuplicateVariableError,
    LexicalError,
    NonLinearMultiplicationError,
    Problem,
    SolveOptions,
    Variable,
    exp,
    sub,
)


class RecordingBackend:
    """Backend that records messages and returns a canned answer"""

    def __init__(self, answer):
        self.answer = answer
        self.messages = []
        self.options = []

    def solve(self, message, options=None):
        self.messages.append(message)
        self.options.append(options)
        return self.answer


@pytest.fixture
def demo():
    """Problem from the package example"""
    p = Problem()
    a = p.variable("a", max=1)
    b = p.variable("b", min=2, max=4)
    p.constraint("{} + 2 <= {}", a, b)
    p.constraint("1 + {} >= 4 - {}", a, b)
    return p, a, b


def terms(entries):
    return [(entry['name'], entry['factor']) for entry in entries]


def test_variable_registration():
    """Variables are created with their options"""
    p = Problem()
    v = p.variable("v", min=0, max=10, integer=True, initial=3)
    assert isinstance(v, Variable)
    assert (v.name, v.min, v.max, v.integer, v.initial) == ("v", 0, 10, True, 3)
    assert p.get_variable("v") is v


def test_duplicate_variable():
    """Names are unique within a problem"""
    p = Problem()
    p.variable("a")
    with pytest.raises(DuplicateVariableError):
        p.variable("a")
    with pytest.raises(ValueError):
        p.variable("a", min=1)
    assert len(p.variables) == 1


def test_same_name_in_different_problems():
    """Each problem has its own namespace"""
    Problem().variable("a")
    Problem().variable("a")


def test_constraint_triple_ge():
    """'>=' triples are normalized to right - left <= 0"""
    p = Problem()
    a = p.variable("a")
    b = p.variable("b")
    c = p.constraint(a, ">=", b)
    assert c.expression == sub(b, a)
    assert not c.is_equality
    assert p.constraints == [c]


def test_constraint_triple_eq():
    """'==' triples are normalized to left - right == 0"""
    p = Problem()
    a = p.variable("a")
    b = p.variable("b")
    c = p.constraint(a, "==", b)
    assert c.expression == sub(a, b)
    assert c.is_equality


def test_constraint_triple_with_number_left():
    """The left side of a triple may be a number"""
    p = Problem()
    a = p.variable("a")
    c = p.constraint(2, "<=", a)
    assert c.expression == sub(2, a)


def test_constraint_triple_bad_comparator():
    """Unknown comparators are rejected"""
    p = Problem()
    a = p.variable("a")
    with pytest.raises(ValueError):
        p.constraint(a, "<", 1)
    assert p.constraints == []


def test_constraint_from_source(demo):
    """Sources are parsed, normalized and appended"""
    p, a, b = demo
    c = p.constraint("{} == 2 * {}", a, b)
    assert c.is_equality
    assert c.expression == sub(a, exp("2 * {}", b))
    assert p.constraints[-1] is c


def test_failed_constraint_leaves_problem_unchanged(demo):
    """Errors in a source do not add anything"""
    p, a, b = demo
    with pytest.raises(LexicalError):
        p.constraint("{} + 2 <= {} ;", a, b)
    with pytest.raises(NonLinearMultiplicationError):
        p.constraint("{} * {} <= 1", a, b)
    assert len(p.constraints) == 2


def test_demo_message(demo):
    """The demo serializes to the expected terms and offsets"""
    p, a, b = demo
    message = p.to_message("max", exp("10 * ({} - {} / 5) - {}", a, b, b))

    assert message['direction'] == 'max'
    assert message['variables'] == [
        {'name': 'a', 'min': None, 'max': 1.0, 'initial': None, 'integer': False},
        {'name': 'b', 'min': 2.0, 'max': 4.0, 'initial': None, 'integer': False},
    ]
    assert terms(message['constraints'][0]) == [('a', 1.0), ('b', -1.0)]
    assert terms(message['constraints'][1]) == [('b', -1.0), ('a', -1.0)]
    assert message['constraint_offsets'] == [2.0, 3.0]
    assert message['equalities'] == []
    assert message['equalities_offsets'] == []

    objective = terms(message['objective'])
    assert [name for name, _ in objective] == ['a', 'b']
    assert [factor for _, factor in objective] == pytest.approx([10.0, -3.0])
    assert message['objective_offset'] == 0
    assert message['verbose'] is False


def test_equalities_are_separate():
    """Equalities go to their own parallel lists"""
    p = Problem()
    x = p.variable("x")
    y = p.variable("y")
    p.constraint("{} + {} == 4", x, y)
    p.constraint(x, "<=", 3)
    message = p.to_message("min", x)
    assert terms(message['equalities'][0]) == [('x', 1.0), ('y', 1.0)]
    assert message['equalities_offsets'] == [-4.0]
    assert terms(message['constraints'][0]) == [('x', 1.0)]
    assert message['constraint_offsets'] == [-3.0]


def test_message_is_stable(demo):
    """Repeated serialization gives the same message"""
    p, a, b = demo
    assert p.to_message("min", a) == p.to_message("min", a)


def test_cancelled_terms_are_serialized():
    """Zero factors stay in the term list"""
    p = Problem()
    a = p.variable("a")
    p.constraint(exp("{} - {}", a, a), "<=", 1)
    assert terms(p.to_message("min", a)['constraints'][0]) == [('a', 0.0)]


def test_foreign_variables_are_rejected():
    """Expressions may only use variables of the same problem"""
    p = Problem()
    p.variable("a")
    stranger = Variable("z")
    with pytest.raises(ValueError):
        p.to_message("min", stranger)


def test_foreign_variable_with_known_name():
    """Variables are matched by identity, not by name"""
    p = Problem()
    p.variable("a")
    impostor = Variable("a")
    with pytest.raises(ValueError):
        p.to_message("min", impostor)
    with pytest.raises(ValueError):
        p.constraint("{} <= 1", impostor)
    with pytest.raises(ValueError):
        p.constraint(impostor, ">=", 0)
    assert p.constraints == []


def test_constraint_from_operators():
    """Constraints built with '<=' and '>=' can be added directly"""
    p = Problem()
    a = p.variable("a")
    b = p.variable("b")
    c = p.constraint(a + 2*b <= 10)
    assert p.constraints == [c]
    assert c.expression == sub(a + 2*b, 10)

    with pytest.raises(ValueError):
        p.constraint(Variable("z") >= a)
    assert len(p.constraints) == 1


def test_maximize_with_backend(demo):
    """Solutions are mapped back onto the variables by position"""
    p, a, b = demo
    backend = RecordingBackend({'status': 'optimal', 'values': [1.0, 3.0]})
    p._backend = backend
    solution = p.maximize("10 * ({} - {} / 5) - {}", a, b, b)

    assert backend.messages[0]['direction'] == 'max'
    assert solution.is_optimal()
    assert solution.values == {'a': 1.0, 'b': 3.0}
    assert solution['b'] == 3.0
    assert a.value == 1.0
    assert b.value == 3.0
    assert solution.objective == pytest.approx(1.0)


def test_minimize_with_expression():
    """Objectives may be given as values"""
    backend = RecordingBackend({'status': 'optimal', 'values': [0.0]})
    p = Problem(backend=backend)
    a = p.variable("a", min=0)
    p.minimize(2 * a + 1)
    message = backend.messages[0]
    assert message['direction'] == 'min'
    assert terms(message['objective']) == [('a', 2.0)]
    assert message['objective_offset'] == 1.0


def test_no_solution():
    """Without a solution the values stay empty"""
    backend = RecordingBackend({'status': 'infeasible', 'values': []})
    p = Problem(backend=backend)
    a = p.variable("a")
    solution = p.minimize(a)
    assert solution.status == 'infeasible'
    assert solution.values == {}
    assert solution.objective is None
    assert a.value is None


def test_options_are_forwarded():
    """The verbose flag travels in the message"""
    backend = RecordingBackend({'status': 'unbounded', 'values': []})
    p = Problem(backend=backend)
    a = p.variable("a")
    options = SolveOptions(verbose=True)
    p.maximize(a, options=options)
    assert backend.messages[0]['verbose'] is True
    assert backend.options[0] is options


def test_objective_operands_need_source():
    """Operands are only accepted with a format string"""
    p = Problem(backend=RecordingBackend({'status': 'optimal', 'values': [0.0, 0.0]}))
    a = p.variable("a")
    b = p.variable("b")
    with pytest.raises(TypeError):
        p.minimize(a, b)


def test_repr(demo):
    """Problems summarize their size"""
    p, _, _ = demo
    assert repr(p) == "Problem(name='MILP', variables=2, constraints=2)"


def test_optimal_answer_without_values():
    """Backends answering 'optimal' must send every value"""
    p = Problem(backend=RecordingBackend({'status': 'optimal', 'values': []}))
    a = p.variable("a")
    with pytest.raises(ValueError):
        p.minimize(a)
    assert a.value is None
