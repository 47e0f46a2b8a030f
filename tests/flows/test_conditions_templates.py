import pytest

from stepflow.flows.conditions import evaluate_condition, is_supported_condition, parse_condition
from stepflow.flows.templates import parse_var_assignment, render_template
from stepflow.models import VariableInfo
from stepflow.values import ErrorValue


def _vars(**values):
    return {name: VariableInfo(name=name, value=value) for name, value in values.items()}


@pytest.mark.parametrize(
    "condition,variables,expected",
    [
        ("err != nil", _vars(err=ErrorValue("x")), True),
        ("err != nil", _vars(err=None), False),
        ("err != nil", {}, False),
        ("ok == true", _vars(ok=True), True),
        ("ok == true", _vars(ok="true"), True),
        ("ok == true", {}, False),
        ("ok == false", _vars(ok=False), True),
        ("ok == false", {}, False),
        ("ok != true", {}, True),
        ("ok != true", _vars(ok=True), False),
        ("(ok == true)", _vars(ok=True), True),
        ("n > 3", _vars(n=5), False),
        ("ok == nil", _vars(ok=None), False),
        ("a && b", _vars(a=True, b=True), False),
    ],
)
def test_condition_grammar(condition, variables, expected):
    assert evaluate_condition(condition, variables) is expected


def test_supported_condition_forms():
    assert parse_condition("flag != true") == ("flag", "!=", "true")
    assert is_supported_condition("名前 != nil")
    assert not is_supported_condition("flag != false")
    assert not is_supported_condition("")


def test_render_template_single_pass():
    variables = _vars(name="Ann", loop="{{name}}", flag=True, nothing=None, count=3)
    assert render_template("Hi {{name}}!", variables) == "Hi Ann!"
    assert render_template("{{loop}}", variables) == "{{name}}"
    assert render_template("{{ flag }}/{{nothing}}/{{count}}", variables) == "true/nil/3"
    assert render_template("keep {{missing}}", variables) == "keep {{missing}}"


def test_parse_var_assignment():
    assert parse_var_assignment('greeting := "Hi {{name}}"') == ("greeting", "Hi {{name}}")
    assert parse_var_assignment("count := 3") == ("count", "3")
    assert parse_var_assignment("no assignment here") is None
