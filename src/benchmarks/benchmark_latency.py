#!/usr/bin/env python3
"""
Latency benchmark for the Turnstile /evaluate endpoint.

Measures p50, p95, p99 latency and throughput for:
- Mono-client (sequential requests)
- Multi-client (concurrent requests with asyncio)

Each request uses its own identity unless --identity is given, so the
benchmark measures admission cost rather than the 429 path.

Usage:
    python benchmark_latency.py --url http://localhost:8080 --requests 1000
    python benchmark_latency.py --policy b2b --concurrent 50 --requests 5000
"""

import argparse
import asyncio
import json
import statistics
import time
from dataclasses import dataclass
from typing import Optional

import httpx


@dataclass
class BenchmarkResult:
    """Benchmark result metrics."""

    total_requests: int
    admitted_requests: int
    rejected_requests: int
    failed_requests: int
    total_duration_seconds: float
    latencies_ms: list[float]

    @property
    def throughput(self) -> float:
        """Requests per second."""
        return self.total_requests / self.total_duration_seconds

    def percentile(self, p: int) -> float:
        if not self.latencies_ms:
            return 0
        ordered = sorted(self.latencies_ms)
        return ordered[min(int(len(ordered) * p / 100), len(ordered) - 1)]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        latencies = self.latencies_ms or [0.0]
        return {
            "total_requests": self.total_requests,
            "admitted_requests": self.admitted_requests,
            "rejected_requests": self.rejected_requests,
            "failed_requests": self.failed_requests,
            "total_duration_seconds": round(self.total_duration_seconds, 3),
            "throughput_rps": round(self.throughput, 2),
            "latency_ms": {
                "mean": round(statistics.mean(latencies), 2),
                "p50": round(self.percentile(50), 2),
                "p95": round(self.percentile(95), 2),
                "p99": round(self.percentile(99), 2),
                "min": round(min(latencies), 2),
                "max": round(max(latencies), 2),
            },
        }


async def evaluate_request(
    client: httpx.AsyncClient, base_url: str, policy: str, identity: str
) -> tuple[float, Optional[bool]]:
    """
    Make a single evaluate request.

    Returns: (latency_ms, admitted) where admitted is None on failure
    """
    payload = {"identity": identity, "policy": policy}

    start = time.perf_counter()
    try:
        response = await client.post(f"{base_url}/evaluate", json=payload)
    except httpx.HTTPError:
        return (time.perf_counter() - start) * 1000, None
    latency_ms = (time.perf_counter() - start) * 1000

    if response.status_code == 200:
        return latency_ms, True
    if response.status_code == 429:
        return latency_ms, False
    return latency_ms, None


async def run_benchmark(
    base_url: str,
    policy: str,
    identity: Optional[str],
    num_requests: int,
    concurrency: int,
) -> BenchmarkResult:
    """Run the benchmark with ``concurrency`` workers (1 = sequential)."""
    latencies: list[float] = []
    outcomes: list[Optional[bool]] = []
    queue: asyncio.Queue[int] = asyncio.Queue()
    for i in range(num_requests):
        queue.put_nowait(i)

    async def worker(client: httpx.AsyncClient) -> None:
        while True:
            try:
                i = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            latency_ms, admitted = await evaluate_request(
                client, base_url, policy, identity or f"bench-{i}"
            )
            latencies.append(latency_ms)
            outcomes.append(admitted)

    limits = httpx.Limits(max_connections=concurrency)
    async with httpx.AsyncClient(timeout=30.0, limits=limits) as client:
        start_time = time.perf_counter()
        await asyncio.gather(*(worker(client) for _ in range(concurrency)))
        total_duration = time.perf_counter() - start_time

    return BenchmarkResult(
        total_requests=num_requests,
        admitted_requests=outcomes.count(True),
        rejected_requests=outcomes.count(False),
        failed_requests=outcomes.count(None),
        total_duration_seconds=total_duration,
        latencies_ms=latencies,
    )


def print_results(result: BenchmarkResult, title: str) -> None:
    """Print benchmark results in a formatted table."""
    data = result.to_dict()
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}")
    print(f"  Total requests:      {result.total_requests:,}")
    print(f"  Admitted:            {result.admitted_requests:,}")
    print(f"  Rejected (429):      {result.rejected_requests:,}")
    print(f"  Failed:              {result.failed_requests:,}")
    print(f"  Duration:            {result.total_duration_seconds:.2f}s")
    print(f"  Throughput:          {result.throughput:,.2f} req/s")
    print()
    print("  Latency (ms):")
    for name, value in data["latency_ms"].items():
        print(f"    {name.upper():<19}{value:.2f}")
    print(f"{'=' * 60}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Turnstile latency benchmark")
    parser.add_argument("--url", default="http://localhost:8080", help="Turnstile URL")
    parser.add_argument("--policy", default="general", help="Policy name")
    parser.add_argument("--identity", help="Fixed identity (default: one per request)")
    parser.add_argument("--requests", type=int, default=1000, help="Number of requests")
    parser.add_argument("--concurrent", type=int, default=1, help="Concurrent workers")
    parser.add_argument("--output", help="Output JSON file")

    args = parser.parse_args()

    print(f"Turnstile benchmark: {args.url} policy={args.policy} requests={args.requests}")

    result = await run_benchmark(
        args.url, args.policy, args.identity, args.requests, max(1, args.concurrent)
    )
    title = "Sequential" if args.concurrent <= 1 else f"Concurrent ({args.concurrent} workers)"
    print_results(result, title)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"\nResults saved to {args.output}")


if __name__ == "__main__":
    asyncio.run(main())
