from stepflow.observability.metrics import MetricsRegistry


def test_metrics_registry_aggregates_steps_and_flows():
    metrics = MetricsRegistry()
    metrics.record_step("lookup", 0.5)
    metrics.record_step("lookup", 1.5, failed=True, retried=True)
    metrics.record_flow("completed", 2.0)
    metrics.record_flow("cancelled", 4.0)

    step = metrics.get_step_metrics()["lookup"]
    assert step.calls == 2
    assert step.failures == 1
    assert step.retries == 1
    assert step.total_duration_seconds == 2.0

    flows = metrics.get_flow_metrics()
    assert flows.total_runs == 2
    assert flows.completed == 1
    assert flows.cancelled == 1
    assert flows.avg_duration_seconds == 3.0
    assert metrics.snapshot()["steps"]["lookup"]["calls"] == 2


def test_hook_failures_are_counted_per_hook():
    metrics = MetricsRegistry()
    assert metrics.snapshot()["hook_failures"] == {}
    metrics.record_hook_failure("on_update")
    metrics.record_hook_failure("on_update")
    metrics.record_hook_failure("on_exit")
    assert metrics.get_hook_failures() == {"on_update": 2, "on_exit": 1}
