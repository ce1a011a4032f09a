"""Prometheus metrics for monitoring kernelshap explanations."""

from collections.abc import Iterator
from contextlib import contextmanager
from time import time

from prometheus_client import Counter, Histogram

# Explanation metrics
explain_latency_seconds = Histogram(
    "kernelshap_explain_latency_seconds",
    "Latency of explain calls in seconds",
    ["link"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

explanations_total = Counter(
    "kernelshap_explanations_total",
    "Total number of explain calls",
    ["status"],
)

# Prediction gateway metrics
synthetic_rows_total = Counter(
    "kernelshap_synthetic_rows_total",
    "Total number of synthetic rows sent to prediction providers",
)

prediction_latency_seconds = Histogram(
    "kernelshap_prediction_latency_seconds",
    "Latency of prediction provider calls in seconds",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Numerics
regularized_solves_total = Counter(
    "kernelshap_regularized_solves_total",
    "Regressions solved with the regularized pseudo-inverse",
)

degenerate_outputs_total = Counter(
    "kernelshap_degenerate_outputs_total",
    "Output dimensions whose link transform was not finite",
    ["link"],
)


def track_explanation(status: str) -> None:
    """Track a finished explain call.

    Args:
        status: Outcome of the call ('success' or 'failure')
    """
    explanations_total.labels(status=status).inc()


def track_synthetic_rows(count: int) -> None:
    """Track synthetic rows sent to a prediction provider."""
    synthetic_rows_total.inc(count)


def track_regularized_solve() -> None:
    """Track a regression that needed regularization."""
    regularized_solves_total.inc()


def track_degenerate_output(link: str) -> None:
    """Track an output dimension lost to a degenerate link transform.

    Args:
        link: Link function name
    """
    degenerate_outputs_total.labels(link=link).inc()


@contextmanager
def track_time(metric: Histogram, **labels: str) -> Iterator[None]:
    """Context manager to track execution time of a code block.

    Args:
        metric: Prometheus Histogram metric to observe
        **labels: Labels to apply to the metric

    Example:
        with track_time(explain_latency_seconds, link="identity"):
            values = await explainer.explain(model, predictions)
    """
    start = time()
    try:
        yield
    finally:
        duration = time() - start
        if labels:
            metric.labels(**labels).observe(duration)
        else:
            metric.observe(duration)
