from stepflow.diagnostics import create_diagnostic, get_definition
from stepflow.parser import has_errors, parse_flow, validate_flow


def _codes(source):
    flow = parse_flow(source, flow_id="v")
    assert flow.success, flow.error
    return [diag.code for diag in validate_flow(flow)]


def test_clean_flow_has_no_diagnostics():
    source = (
        "s = a.b.c(x: string) -> (y: string, err: error);\n"
        "func main() {\n"
        "    y, err := s(\"v\")\n"
        "    if err != nil {\n"
        "        return\n"
        "    }\n"
        "}\n"
    )
    assert _codes(source) == []


def test_undeclared_step_is_an_error():
    flow = parse_flow("func main() {\n    y := nope(1)\n}\n", flow_id="v")
    diagnostics = validate_flow(flow)
    assert [d.code for d in diagnostics] == ["SF-101"]
    assert diagnostics[0].severity == "error"
    assert diagnostics[0].line == 2
    assert has_errors(diagnostics)


def test_too_many_args_and_returns():
    source = (
        "s = a.b.c(x: string) -> (y: string);\n"
        "func main() {\n"
        "    a, b := s(1, 2)\n"
        "}\n"
    )
    assert _codes(source) == ["SF-102", "SF-103"]


def test_static_step_with_arguments_warns():
    source = (
        "s = a.b.c[case1] -> (y: string);\n"
        "func main() {\n"
        "    y := s(1)\n"
        "}\n"
    )
    flow = parse_flow(source, flow_id="v")
    diagnostics = validate_flow(flow)
    assert [d.code for d in diagnostics] == ["SF-104"]
    assert not has_errors(diagnostics)


def test_malformed_metadata_is_reported():
    source = (
        's = a.b.c(x: string) -> (y: string) {retry: "lots"};\n'
        "func main() {\n"
        '    y := s(1){priority:"urgent", timeout:-5}\n'
        "}\n"
    )
    assert _codes(source) == ["SF-105", "SF-105", "SF-105"]


def test_unsupported_condition_and_duplicate_alias():
    source = (
        "s = a.b.c(x: string) -> (y: string);\n"
        "s = a.b.other(x: string) -> (y: string);\n"
        "func main() {\n"
        "    if y > 3 {\n"
        "        return\n"
        "    }\n"
        "}\n"
    )
    assert _codes(source) == ["SF-107", "SF-106"]


def test_nested_calls_are_checked():
    source = (
        "func main() {\n"
        "    if ok == true {\n"
        "        x := missing()\n"
        "    }\n"
        "}\n"
    )
    assert _codes(source) == ["SF-101"]


def test_diagnostic_registry():
    definition = get_definition("SF-102")
    assert definition is not None
    assert definition.default_severity == "error"
    diag = create_diagnostic("SF-101", message_kwargs={"step": "x"}, line=4)
    assert str(diag) == "[SF-101] line 4: Call to undeclared step 'x'"
    assert get_definition("SF-999") is None
