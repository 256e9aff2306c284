"""
Tests for structured logging and operation timing.
"""
import json
import logging
import unittest
from unittest.mock import MagicMock

import pytest

from clustervec.monitoring import (
    JSONFormatter,
    OperationLogger,
    StructuredLogger,
    configure_logging,
    get_logger,
)


class TestStructuredLogger(unittest.TestCase):
    """Test cases for the StructuredLogger class."""

    def test_get_logger(self):
        logger = get_logger("clustervec.test", component="tests")
        self.assertIsInstance(logger, StructuredLogger)
        self.assertEqual(logger.name, "clustervec.test")
        self.assertEqual(logger.component, "tests")

    def test_component_defaults_to_name(self):
        logger = get_logger("clustervec.other")
        self.assertEqual(logger.component, "clustervec.other")

    def test_with_context_returns_new_logger(self):
        logger = get_logger("clustervec.test")
        bound = logger.with_context(cluster_id="c1")
        self.assertIsNot(bound, logger)
        self.assertEqual(bound.component, logger.component)

    def test_error_adds_exception_details(self):
        logger = get_logger("clustervec.test")
        logger.logger = MagicMock()

        logger.error("failed", error=ValueError("bad"), cluster_id="c1")

        logger.logger.error.assert_called_once_with(
            "failed", error_type="ValueError", error_message="bad", cluster_id="c1"
        )


class TestOperationLogger:
    """Test operation timing."""

    def test_success(self):
        logger = MagicMock()
        with OperationLogger(logger, "split_cluster", cluster_id="c1") as operation:
            operation.context["members"] = 4

        logger.debug.assert_called_once()
        logger.info.assert_called_once()
        kwargs = logger.info.call_args.kwargs
        assert kwargs["operation"] == "split_cluster"
        assert kwargs["operation_status"] == "success"
        assert kwargs["cluster_id"] == "c1"
        assert kwargs["members"] == 4
        assert kwargs["duration_ms"] >= 0
        logger.error.assert_not_called()

    def test_error_is_logged_and_propagated(self):
        logger = MagicMock()
        with pytest.raises(KeyError):
            with OperationLogger(logger, "merge_clusters"):
                raise KeyError("missing")

        logger.error.assert_called_once()
        kwargs = logger.error.call_args.kwargs
        assert kwargs["operation_status"] == "error"
        assert isinstance(kwargs["error"], KeyError)
        logger.info.assert_not_called()


class TestLoggingConfiguration:
    """Test configure_logging and the JSON formatter."""

    def teardown_method(self):
        package_logger = logging.getLogger("clustervec")
        package_logger.handlers.clear()
        package_logger.setLevel(logging.NOTSET)

    def test_json_formatter(self):
        record = logging.LogRecord(
            name="clustervec.store",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg="cluster %s removed",
            args=("c1",),
            exc_info=None,
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "warning"
        assert entry["logger"] == "clustervec.store"
        assert entry["message"] == "cluster c1 removed"
        assert "timestamp_iso" in entry

    def test_configure_plain(self):
        configure_logging("DEBUG")
        package_logger = logging.getLogger("clustervec")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert not isinstance(package_logger.handlers[0].formatter, JSONFormatter)

    def test_configure_json_replaces_handlers(self):
        configure_logging("INFO")
        configure_logging("WARNING", json_format=True)
        package_logger = logging.getLogger("clustervec")
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, JSONFormatter)

    def test_configure_without_console(self):
        configure_logging("INFO", enable_console=False)
        package_logger = logging.getLogger("clustervec")
        assert isinstance(package_logger.handlers[0], logging.NullHandler)

    def test_invalid_level(self):
        with pytest.raises(AttributeError):
            configure_logging("LOUD")
