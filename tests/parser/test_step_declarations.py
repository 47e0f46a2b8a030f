from stepflow.parser import parse_flow
from stepflow.parser.steps import looks_like_step_declaration, parse_parameters, parse_step_declaration


def test_dynamic_declaration_keeps_parameter_order():
    step = parse_step_declaration(
        'lookup = users.api.find(name: string "User name", age: int "Age") -> (id: string "ID", err: error "E");',
        line_number=3,
    )
    assert step is not None
    assert step.name == "lookup"
    assert step.function == "users.api.find"
    assert [p.name for p in step.input_params] == ["name", "age"]
    assert [p.type for p in step.input_params] == ["string", "int"]
    assert step.input_params[0].desc == "User name"
    assert [p.name for p in step.output_params] == ["id", "err"]
    assert step.output_params[1].type == "error"
    assert not step.is_static
    assert step.line_number == 3


def test_static_declaration_captures_case_id():
    step = parse_step_declaration('report = reports.daily[case_42] -> (url: string "Report URL");')
    assert step is not None
    assert step.is_static
    assert step.case_id == "case_42"
    assert step.input_params == []
    assert [p.name for p in step.output_params] == ["url"]


def test_legacy_parameter_order():
    step = parse_step_declaration("s = pkg.fn(string name, int count) -> string id, error err;")
    assert step is not None
    assert [(p.type, p.name) for p in step.input_params] == [("string", "name"), ("int", "count")]
    assert [(p.type, p.name) for p in step.output_params] == [("string", "id"), ("error", "err")]
    # legacy parameters default their description to the name
    assert step.output_params[0].desc == "id"


def test_bracketed_types_do_not_split_parameters():
    params = parse_parameters('m: map[string]interface{} "a map", xs: []User "users, plural", n: int')
    assert [p.name for p in params] == ["m", "xs", "n"]
    assert params[0].type == "map[string]interface{}"
    assert params[1].type == "[]User"
    assert params[1].desc == "users, plural"
    assert params[2].desc == ""


def test_step_level_metadata():
    step = parse_step_declaration('notify = a.b.send(msg: string) -> (ok: bool) {err_continue: true, retry: 2};')
    assert step is not None
    assert step.metadata == {"err_continue": True, "retry": 2}
    assert step.err_continue is True


def test_malformed_declarations_are_skipped():
    assert parse_step_declaration("broken = pkg.fn(name: string -> (x: string);") is None
    assert parse_step_declaration("nothing here") is None
    assert not looks_like_step_declaration("x := step1(a)")


def test_flow_keeps_declaration_order_and_descriptions():
    source = (
        "//desc: Find the user\n"
        'first = a.b.first(x: string "X") -> (y: string "Y");\n'
        'second = a.b.second(y: string "Y") -> (z: string "Z");\n'
        "third = a.b.third[c1] -> (w: string);\n"
        "func main() {\n"
        "}\n"
    )
    flow = parse_flow(source, flow_id="f")
    assert flow.success
    assert [s.name for s in flow.steps] == ["first", "second", "third"]
    assert flow.steps[0].desc == "Find the user"
    assert flow.steps[1].desc == ""
