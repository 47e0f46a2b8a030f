"""Control-flow signals raised inside the driver loop."""

from typing import Optional


class ReturnSignal(Exception):
    def __init__(self, line_number: Optional[int] = None) -> None:
        super().__init__("return")
        self.line_number = line_number


class StepTimeoutError(Exception):
    def __init__(self, step_name: str, timeout: float) -> None:
        super().__init__(f"Step '{step_name}' timed out after {timeout} seconds")
        self.step_name = step_name
        self.timeout = timeout
