"""Unit tests for configure_logging."""

from __future__ import annotations

import io
import json
import logging

import structlog

from provider_directory.utils.logging import configure_logging


def test_json_output_to_given_stream() -> None:
    stream = io.StringIO()
    configure_logging(log_level="INFO", json_output=True, stream=stream)

    structlog.get_logger("t").info("providers_fetched", count=3)

    line = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert line["event"] == "providers_fetched"
    assert line["count"] == 3
    assert line["level"] == "info"


def test_level_filters_lower_events() -> None:
    stream = io.StringIO()
    configure_logging(log_level="WARNING", json_output=True, stream=stream)

    logger = structlog.get_logger("t")
    logger.info("hidden")
    logger.warning("shown")

    assert "hidden" not in stream.getvalue()
    assert "shown" in stream.getvalue()


def test_httpx_quieted_below_warning() -> None:
    configure_logging(log_level="DEBUG", json_output=True, stream=io.StringIO())
    assert logging.getLogger("httpx").level == logging.WARNING
