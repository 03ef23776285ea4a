"""
Tests for the logging manager and formatters.
"""

import logging

from provider_loader.config.models import LoggingConfig
from provider_loader.utils.logging_config import ColoredFormatter, ContextFilter, LoggingManager


def _record(level=logging.ERROR, message="boom"):
    return logging.LogRecord("tests", level, __file__, 1, message, None, None)


class TestFormatters:
    """Test the formatter and filter helpers."""

    def test_colored_formatter_leaves_record_untouched(self):
        record = _record()
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)

        assert "\033[31mERROR\033[0m boom" == output
        assert record.levelname == "ERROR"

    def test_context_filter_adds_process_id(self):
        record = _record()
        assert ContextFilter("sftp").filter(record) is True
        assert record.component == "sftp"
        assert isinstance(record.process_id, int)


class TestLoggingManager:
    """Test installing and removing handlers."""

    def test_file_handlers(self, tmp_path):
        manager = LoggingManager(LoggingConfig(level="DEBUG", directory=str(tmp_path / "logs")))
        manager.setup_logging(enable_colors=False)
        try:
            logging.getLogger("provider_loader.tests").info("routine message")
            logging.getLogger("provider_loader.tests").error("failure message")
        finally:
            manager.shutdown()

        main_log = manager.main_log_file.read_text(encoding="utf-8")
        error_log = manager.error_log_file.read_text(encoding="utf-8")
        assert "routine message" in main_log
        assert "failure message" in error_log
        assert "routine message" not in error_log

    def test_console_only_without_directory(self):
        manager = LoggingManager()
        manager.setup_logging()
        try:
            assert manager.main_log_file is None
            assert len(manager._handlers) == 1
        finally:
            manager.shutdown()

    def test_shutdown_removes_handlers(self, tmp_path):
        manager = LoggingManager(LoggingConfig(directory=str(tmp_path)))
        manager.setup_logging()
        installed = list(manager._handlers)
        manager.shutdown()

        root_handlers = logging.getLogger().handlers
        assert not any(handler in root_handlers for handler in installed)

    def test_paramiko_is_quietened(self):
        manager = LoggingManager()
        manager.setup_logging()
        manager.shutdown()
        assert logging.getLogger("paramiko.transport").level == logging.ERROR
