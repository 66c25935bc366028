"""Prometheus metrics for Turnstile."""

from prometheus_client import Counter, Gauge, Histogram, Info

from turnstile import __version__


class TurnstileMetrics:
    """Metrics collection for Turnstile."""

    def __init__(self) -> None:
        self.info = Info("turnstile", "Turnstile admission controller")
        self.info.info({"version": __version__, "algorithm": "fixed_window"})

        self.admissions_total = Counter(
            "turnstile_admissions_total",
            "Total number of admission decisions",
            ["policy", "result"],
        )

        self.counters_swept_total = Counter(
            "turnstile_counters_swept_total",
            "Expired counters removed by the periodic sweep",
        )

        self.sweep_failures_total = Counter(
            "turnstile_sweep_failures_total",
            "Sweeps that raised an exception",
        )

        self.tracked_counters = Gauge(
            "turnstile_tracked_counters",
            "Counters currently held in memory",
        )

        self.http_requests_total = Counter(
            "turnstile_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
        )

        self.evaluate_duration = Histogram(
            "turnstile_evaluate_duration_seconds",
            "Duration of admission checks served over HTTP",
            ["policy"],
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1],
        )

        self.http_request_duration = Histogram(
            "turnstile_http_request_duration_seconds",
            "Duration of HTTP requests",
            ["method", "endpoint"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
        )


# Singleton instance
metrics = TurnstileMetrics()
