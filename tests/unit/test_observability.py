"""Unit tests for tracing decorators and logging configuration."""

import json
import logging

import pytest

from menu_view_service.observability import configure_logging, traced


@traced("double_value")
def double(value: int) -> int:
    return value * 2


@traced()
async def fetch_value(value: int) -> int:
    return value


@traced("explode")
def explode() -> None:
    raise ValueError("boom")


@pytest.mark.unit
class TestTraced:
    """Test suite for the traced decorator."""

    def test_sync_function_result(self) -> None:
        """Test that sync functions return their result."""
        assert double(21) == 42
        assert double.__name__ == "double"

    @pytest.mark.asyncio
    async def test_async_function_result(self) -> None:
        """Test that async functions stay awaitable."""
        assert await fetch_value(7) == 7

    def test_exceptions_are_reraised(self) -> None:
        """Test that failures propagate to the caller."""
        with pytest.raises(ValueError, match="boom"):
            explode()


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_emits_json(self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that log records are rendered as JSON."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            configure_logging("INFO")
            logging.getLogger("menu_view_service.test").info("Views ready")
            lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
        finally:
            root.handlers[:] = previous_handlers
            root.setLevel(previous_level)

        record = json.loads(lines[-1])
        assert record["message"] == "Views ready"
        assert record["levelname"] == "INFO"
        assert record["name"] == "menu_view_service.test"
