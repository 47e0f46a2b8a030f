import json
import logging
from pathlib import Path

import pytest

from stepflow.cli import main


FLOW_TEXT = (
    'var input = map[string]interface{}{"N": "Ann"}\n'
    'step1 = a.b.c(name: string "N") -> (id: string "ID", err: error "E");\n'
    "func main() {\n"
    '    id, err := step1(input["N"]){retry:1}\n'
    '    msg := "hello {{id}}"\n'
    "}\n"
)


def write_flow(tmp_path: Path, text: str = FLOW_TEXT) -> Path:
    flow_file = tmp_path / "flow.sf"
    flow_file.write_text(text, encoding="utf-8")
    return flow_file


def test_cli_parse_outputs_model(tmp_path, capsys):
    flow_file = write_flow(tmp_path)
    main(["parse", str(flow_file), "--flow-id", "cli-1"])
    data = json.loads(capsys.readouterr().out)
    assert data["flow_id"] == "cli-1"
    assert data["steps"][0]["name"] == "step1"


def test_cli_parse_failure_exits_nonzero(tmp_path, capsys):
    flow_file = write_flow(tmp_path, "func main() {\n")
    with pytest.raises(SystemExit) as excinfo:
        main(["parse", str(flow_file)])
    assert excinfo.value.code == 1
    assert '"success": false' in capsys.readouterr().out


def test_cli_validate_clean_and_with_errors(tmp_path, capsys):
    main(["validate", str(write_flow(tmp_path))])
    assert "no problems found" in capsys.readouterr().out

    bad = write_flow(tmp_path, "func main() {\n    x := ghost(1)\n}\n")
    with pytest.raises(SystemExit) as excinfo:
        main(["validate", str(bad), "--json"])
    assert excinfo.value.code == 1
    diagnostics = json.loads(capsys.readouterr().out)
    assert diagnostics[0]["code"] == "SF-101"


def test_cli_run_with_fixtures(tmp_path, capsys):
    flow_file = write_flow(tmp_path)
    fixtures = tmp_path / "fixtures.json"
    fixtures.write_text(json.dumps({"step1": {"outputs": {"id": "X42"}, "fail_times": 1}}), encoding="utf-8")
    main(["run", str(flow_file), "--fixtures", str(fixtures), "--flow-id", "cli-run"])
    data = json.loads(capsys.readouterr().out)
    assert data["status"] == "completed"
    assert data["flow"]["variables"]["msg"]["value"] == "hello X42"


def test_cli_run_failure_exits_nonzero(tmp_path, capsys):
    flow_file = write_flow(tmp_path)
    fixtures = tmp_path / "fixtures.json"
    fixtures.write_text(json.dumps({"step1": {"success": False, "error": "down"}}), encoding="utf-8")
    with pytest.raises(SystemExit):
        main(["run", str(flow_file), "--fixtures", str(fixtures)])
    assert json.loads(capsys.readouterr().out)["status"] == "failed"


def test_cli_serve_dry_run(capsys):
    main(["serve", "--dry-run", "--port", "9001"])
    assert json.loads(capsys.readouterr().out) == {"status": "ready", "host": "127.0.0.1", "port": 9001}


def test_cli_log_level_comes_from_config_unless_overridden(monkeypatch, capsys):
    monkeypatch.setenv("STEPFLOW_LOG_LEVEL", "error")
    main(["serve", "--dry-run"])
    assert logging.getLogger("stepflow").level == logging.ERROR
    main(["--log-level", "debug", "serve", "--dry-run"])
    assert logging.getLogger("stepflow").level == logging.DEBUG
    capsys.readouterr()


def test_cli_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["parse", str(tmp_path / "missing.sf")])
