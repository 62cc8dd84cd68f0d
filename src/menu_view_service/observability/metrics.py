"""Custom metrics for the menu view service."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-view-svc")

view_publish_counter = meter.create_counter(
    name="menu_view_publish_total",
    description="Total number of view updates published by status",
    unit="1",
)

aggregation_duration_histogram = meter.create_histogram(
    name="menu_view_aggregation_duration_seconds",
    description="Duration of restaurant view aggregation",
    unit="s",
)

active_subscriptions = meter.create_up_down_counter(
    name="menu_view_active_subscriptions",
    description="Current number of live subscriptions by collection level",
    unit="1",
)

subscription_error_counter = meter.create_counter(
    name="menu_view_subscription_errors_total",
    description="Total number of live subscription errors by collection level",
    unit="1",
)


def record_view_published(status: str) -> None:
    """Record a published view update.

    Args:
        status: Published view status ("loading", "ready", "error")
    """
    view_publish_counter.add(1, {"status": status})


def record_aggregation_duration(duration_seconds: float) -> None:
    """Record how long one restaurant aggregation took.

    Args:
        duration_seconds: Duration in seconds
    """
    aggregation_duration_histogram.record(duration_seconds)


def record_subscription_change(level: str, change: int) -> None:
    """Record subscriptions being opened or released.

    Args:
        level: Collection level ("restaurants", "categories", "items")
        change: Positive when opened, negative when released
    """
    active_subscriptions.add(change, {"level": level})


def record_subscription_error(level: str) -> None:
    """Record a live subscription error.

    Args:
        level: Collection level that failed
    """
    subscription_error_counter.add(1, {"level": level})
