import pytest


@pytest.fixture(autouse=True)
def _fast_backoff(monkeypatch):
    """Keep retry backoff out of test wall time."""
    monkeypatch.setenv("STEPFLOW_BACKOFF_SECONDS", "0")
    monkeypatch.delenv("STEPFLOW_ENFORCE_TIMEOUTS", raising=False)
    yield
