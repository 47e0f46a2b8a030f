import asyncio

import pytest

from stepflow.errors import StepNotFoundError
from stepflow.flows import FixtureHandler, FunctionHandler, HandlerRegistry, StepRequest, StepResult
from stepflow.flows.handlers import coerce_result
from stepflow.models import ParamInfo, StepDefinition


def _request(name="lookup", function="users.find", attempt=0):
    step = StepDefinition(name=name, function=function, output_params=[ParamInfo(name="id")])
    return StepRequest(flow_id="f", step=step, inputs={}, expected_outputs=step.output_params, attempt=attempt)


def test_function_handler_accepts_mappings_and_results():
    assert FunctionHandler(lambda req: {"id": 1}).execute_step(_request()).outputs == {"id": 1}
    result = FunctionHandler(lambda req: StepResult.failed("nope")).execute_step(_request())
    assert not result.success and result.error == "nope"
    assert FunctionHandler(lambda req: None).execute_step(_request()).success


def test_function_handler_wraps_async_callables():
    async def fn(request):
        return {"id": request.attempt}

    handler = FunctionHandler(fn)
    assert handler.is_async
    result = asyncio.run(handler.execute_step(_request(attempt=2)))
    assert result.outputs == {"id": 2}


def test_coerce_result_rejects_other_types():
    with pytest.raises(TypeError):
        coerce_result(42)


def test_registry_routes_by_step_then_function_then_default():
    registry = HandlerRegistry(default=lambda req: {"id": "default"})
    registry.register_function("users.find", lambda req: {"id": "by-function"})
    registry.register_step("special", lambda req: {"id": "by-step"})

    assert registry.execute_step(_request(name="special")).outputs == {"id": "by-step"}
    assert registry.execute_step(_request(name="lookup")).outputs == {"id": "by-function"}
    assert registry.execute_step(_request(name="other", function="x.y")).outputs == {"id": "default"}


def test_registry_without_match_raises():
    with pytest.raises(StepNotFoundError):
        HandlerRegistry().execute_step(_request())


def test_fixture_handler_plain_and_scripted_entries():
    handler = FixtureHandler(
        {
            "lookup": {"id": "X1"},
            "flaky": {"outputs": {"id": "X2"}, "fail_times": 1, "error": "transient"},
            "broken": {"success": False, "error": "down"},
        }
    )
    assert handler.execute_step(_request()).outputs == {"id": "X1"}

    first = handler.execute_step(_request(name="flaky", function="f.x", attempt=0))
    second = handler.execute_step(_request(name="flaky", function="f.x", attempt=1))
    assert (first.success, first.error) == (False, "transient")
    assert second.outputs == {"id": "X2"}

    broken = handler.execute_step(_request(name="broken", function="b.x"))
    assert not broken.success and broken.error == "down"
    assert handler.execute_step(_request(name="unknown", function="u.x")).outputs == {}
    assert len(handler.calls) == 5


def test_fixture_handler_strict_mode_and_function_keys():
    handler = FixtureHandler({"users.find": {"id": "by-fn"}}, strict=True)
    assert handler.execute_step(_request(name="whatever")).outputs == {"id": "by-fn"}
    with pytest.raises(KeyError):
        handler.execute_step(_request(name="x", function="nope"))
