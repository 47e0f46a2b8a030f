from __future__ import annotations

import argparse
import asyncio
import json
import statistics
import time
from pathlib import Path
from uuid import uuid4

from stepflow.flows import FixtureHandler, FlowExecutor
from stepflow.parser import parse_flow


async def _run_single(
    executor: FlowExecutor,
    source: str,
    semaphore: asyncio.Semaphore,
    durations: list[float],
    errors: list[str],
) -> None:
    async with semaphore:
        flow = parse_flow(source, flow_id=f"load_{uuid4().hex[:12]}")
        start = time.monotonic()
        try:
            await executor.start(flow)
            durations.append(time.monotonic() - start)
        except Exception as exc:  # pragma: no cover - diagnostic helper
            errors.append(str(exc))


async def run_load_test(executor: FlowExecutor, source: str, concurrency: int, total_requests: int) -> dict[str, float]:
    durations: list[float] = []
    errors: list[str] = []
    semaphore = asyncio.Semaphore(concurrency)
    tasks = [
        asyncio.create_task(_run_single(executor, source, semaphore, durations, errors))
        for _ in range(total_requests)
    ]
    await asyncio.gather(*tasks)
    durations_sorted = sorted(durations)
    p95 = durations_sorted[int(0.95 * len(durations_sorted))] if durations_sorted else 0.0
    return {
        "total": total_requests,
        "errors": len(errors),
        "avg_latency_seconds": statistics.mean(durations) if durations else 0.0,
        "p95_latency_seconds": p95,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Simple flow load tester.")
    parser.add_argument("--flow", required=True, type=Path, help="Path to the flow source file")
    parser.add_argument("--fixtures", type=Path, help="JSON fixtures mapping step alias to outputs")
    parser.add_argument("--concurrency", type=int, default=4, help="Number of concurrent executions")
    parser.add_argument("--requests", type=int, default=20, help="Total number of flow runs")
    args = parser.parse_args()

    fixtures = json.loads(args.fixtures.read_text(encoding="utf-8")) if args.fixtures else {}
    executor = FlowExecutor(FixtureHandler(fixtures))
    source = args.flow.read_text(encoding="utf-8")
    summary = asyncio.run(run_load_test(executor, source, args.concurrency, args.requests))
    print("Load test summary:")
    for key, value in summary.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
