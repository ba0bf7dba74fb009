"""Custom metrics for the menu catalog service."""

from opentelemetry import metrics

# Get meter for the catalog service
meter = metrics.get_meter("menu-catalog-svc")

# AI completion outcomes by use case
ai_completion_counter = meter.create_counter(
    name="ai_completion_total",
    description="Total number of AI completion calls by use case and outcome",
    unit="1",
)

# AI completion latency
ai_completion_duration_histogram = meter.create_histogram(
    name="ai_completion_duration_seconds",
    description="Duration of AI completion calls by use case",
    unit="s",
)

# Suggestions naming menu items that do not exist
recommendation_dropped_counter = meter.create_counter(
    name="recommendation_dropped_total",
    description="Total number of AI suggestions dropped for naming unknown menu items",
    unit="1",
)

description_fallback_counter = meter.create_counter(
    name="description_fallback_total",
    description="Total number of menu items stored with the fallback description",
    unit="1",
)


def record_ai_completion(use_case: str, outcome: str, duration_seconds: float) -> None:
    """Record one AI completion call.

    Args:
        use_case: What the completion was for (e.g., "description", "recommendation")
        outcome: "success" or the name of the error raised
        duration_seconds: Duration in seconds
    """
    ai_completion_counter.add(1, {"use_case": use_case, "outcome": outcome})
    ai_completion_duration_histogram.record(duration_seconds, {"use_case": use_case})


def record_recommendations_dropped(count: int) -> None:
    """Record suggestions dropped during reconciliation.

    Args:
        count: Number of suggestions that matched no menu item
    """
    recommendation_dropped_counter.add(count)


def record_description_fallback() -> None:
    """Record a create that fell back to the templated description."""
    description_fallback_counter.add(1)
