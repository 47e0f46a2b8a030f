import json

import pytest

from stepflow.models import FlowModel, Statement, StatementStatus, VariableInfo
from stepflow.parser import parse_flow
from stepflow.values import ErrorValue


SOURCE = (
    'var input = map[string]interface{}{"N": "Ann"}\n'
    's = a.b.c(x: string "X") -> (y: string "Y", err: error "E") {err_continue: true};\n'
    "func main() {\n"
    '    y, err := s(input["N"]){retry:1}\n'
    "    if err != nil {\n"
    "        return\n"
    "    }\n"
    '    msg := "done {{y}}"\n'
    "}\n"
)


def test_model_json_shape():
    flow = parse_flow(SOURCE, flow_id="json-1")
    data = json.loads(flow.to_json())
    assert set(data) >= {"flow_id", "input_vars", "steps", "main_func", "variables", "success", "error"}
    statements = data["main_func"]["statements"]
    assert [s["type"] for s in statements] == ["function-call", "if", "var"]
    assert statements[0]["status"] == "pending"
    assert statements[0]["options"]["retry"] == 1
    assert statements[1]["children"][0]["type"] == "return"
    assert data["steps"][0]["metadata"] == {"err_continue": True}


def test_round_trip_preserves_status_and_values():
    flow = parse_flow(SOURCE, flow_id="json-2")
    call = flow.main_statements[0]
    call.start_execution()
    call.end_execution(StatementStatus.FAILED_CONTINUE)
    flow.steps[0].add_log("error", "boom")
    flow.add_global_log("info", "started")
    flow.variables["err"] = VariableInfo(name="err", type="error", value=ErrorValue("boom"))

    restored = FlowModel.from_json(flow.to_json())
    assert restored.to_dict() == flow.to_dict()
    assert restored.main_statements[0].status is StatementStatus.FAILED_CONTINUE
    assert restored.main_statements[0].start_time == call.start_time
    assert restored.variables["err"].value == ErrorValue("boom")
    assert restored.steps[0].logs[0].message == "boom"


def test_statement_from_dict_rejects_unknown_type():
    with pytest.raises(ValueError, match="loop"):
        Statement.from_dict({"type": "loop"})


def test_iter_statements_walks_children():
    flow = parse_flow(SOURCE, flow_id="json-3")
    assert [stmt.kind for stmt in flow.iter_statements()] == ["function-call", "if", "return", "var"]
