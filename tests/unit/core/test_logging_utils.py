"""Unit tests for structured logging helpers and logging configuration."""

import logging

import pytest

from camera_preview.core.logging_config import coerce_level, configure_logging
from camera_preview.core.logging_utils import (
    StructuredLogger,
    ensure_structured_logger,
    get_module_logger,
)


class TestStructuredLogger:
    def test_module_logger_namespace(self):
        logger = get_module_logger("PreviewOrchestrator")

        assert logger.name == "camera_preview.PreviewOrchestrator"
        assert logger.component == "PreviewOrchestrator"

    def test_dotted_name_uses_last_segment(self):
        logger = get_module_logger("camera_preview.stream.server")

        assert logger.name == "camera_preview.stream.server"
        assert logger.component == "server"

    def test_messages_are_prefixed(self, caplog):
        logger = get_module_logger("CommandSlot")

        with caplog.at_level(logging.INFO, logger="camera_preview"):
            logger.info("Sending %s", "start")

        assert "[CommandSlot] Sending start" in caplog.messages

    def test_bad_format_args_do_not_raise(self, caplog):
        logger = get_module_logger("CommandSlot")

        with caplog.at_level(logging.INFO, logger="camera_preview"):
            logger.info("no placeholders", "extra")

        assert caplog.messages[-1].endswith("args=extra")

    def test_disabled_level_is_skipped(self, caplog):
        logger = get_module_logger("Quiet")

        with caplog.at_level(logging.WARNING, logger="camera_preview"):
            logger.debug("hidden")

        assert caplog.messages == []

    def test_exception_attaches_traceback(self, caplog):
        logger = get_module_logger("Player")

        with caplog.at_level(logging.ERROR, logger="camera_preview"):
            try:
                raise RuntimeError("decode failed")
            except RuntimeError:
                logger.exception("Step failed")

        record = caplog.records[-1]
        assert record.getMessage() == "[Player] Step failed"
        assert record.exc_info is not None

    def test_ensure_structured_logger(self):
        plain = logging.getLogger("elsewhere")

        wrapped = ensure_structured_logger(plain, component="Elsewhere")

        assert isinstance(wrapped, StructuredLogger)
        assert wrapped.component == "Elsewhere"
        assert ensure_structured_logger(wrapped) is wrapped
        assert ensure_structured_logger(None, component="Fallback").component == "Fallback"


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_coerce_level(self):
        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(" Warn ") == logging.WARNING
        assert coerce_level(logging.ERROR) == logging.ERROR
        with pytest.raises(ValueError):
            coerce_level("chatty")

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "preview.log"

        configure_logging("info", force=True, console=False, log_file=log_file)
        get_module_logger("Runtime").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text()
        assert "[Runtime] hello" in text
        assert "MainThread" in text

    def test_suppressed_loggers(self):
        configure_logging("debug", force=True, console=False)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("aiohttp.access").level == logging.ERROR

    def test_no_outputs_installs_null_handler(self):
        configure_logging("info", force=True, console=False)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.NullHandler)
