import threading

import pytest

from stepflow.config import StepflowConfig
from stepflow.errors import FlowAlreadyRunningError, FlowNotRunningError
from stepflow.flows import CancelToken, FlowRegistry, RetryPolicy
from stepflow.flows.retries import build_retry_policy
from stepflow.options import ExecutionOptions


def test_cancel_token_follows_parent():
    parent = CancelToken()
    child = parent.child()
    assert not child.cancelled
    parent.cancel("shutdown")
    assert child.cancelled
    assert parent.reason == "shutdown"
    assert child.reason == ""


def test_registry_register_cancel_unregister():
    registry = FlowRegistry()
    token = CancelToken()
    registry.register("a", token)
    with pytest.raises(FlowAlreadyRunningError):
        registry.register("a", CancelToken())
    assert registry.is_running("a")
    registry.cancel("a")
    assert token.cancelled
    registry.unregister("a")
    assert registry.running() == []
    with pytest.raises(FlowNotRunningError):
        registry.cancel("a")


def test_registry_is_safe_across_threads():
    registry = FlowRegistry()

    def worker(prefix):
        for i in range(50):
            registry.register(f"{prefix}-{i}", CancelToken())

    threads = [threading.Thread(target=worker, args=(name,)) for name in "abcd"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(registry.running()) == 200


def test_linear_backoff_and_uncapped_retries():
    policy = RetryPolicy(retries=3, backoff_seconds=1.0)
    assert policy.attempts == 4
    assert [policy.delay_for(a) for a in range(3)] == [1.0, 2.0, 3.0]
    assert policy.has_attempts_left(2)
    assert not policy.has_attempts_left(3)

    policy = build_retry_policy(ExecutionOptions(retry=99), StepflowConfig(backoff_seconds=0.5))
    assert policy.retries == 99
    assert policy.attempts == 100
    assert policy.delay_for(0) == 0.5
