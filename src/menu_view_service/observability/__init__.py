"""OpenTelemetry instrumentation and structured logging for the menu view service."""

from menu_view_service.observability.config import configure_logging, setup_observability
from menu_view_service.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
