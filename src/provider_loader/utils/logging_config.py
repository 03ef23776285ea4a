"""Logging configuration for the provider loader."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..config.models import LoggingConfig


class ContextFilter(logging.Filter):
    """Adds context information to log records."""

    def __init__(self, component: str = ""):
        super().__init__()
        self.component = component

    def filter(self, record):
        if not hasattr(record, 'component'):
            record.component = self.component
        record.process_id = os.getpid()
        return True


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record):
        # Work on a copy so file handlers never see the escape codes
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}"
                f"{self.COLORS['RESET']}"
            )
        return super().format(record)


class LoggingManager:
    """Owns the process-wide logging handlers.

    The entry point creates one manager, calls :meth:`setup_logging` at
    startup and :meth:`shutdown` at exit.
    """

    def __init__(self, config: Optional[LoggingConfig] = None, app_name: str = "provider_loader"):
        """Initialize the logging manager.

        Args:
            config: Logging configuration; console-only INFO when omitted
            app_name: Application name used for log file names
        """
        self.config = config or LoggingConfig()
        self.app_name = app_name
        self.log_dir = Path(self.config.directory) if self.config.directory else None
        self._handlers: List[logging.Handler] = []

    @property
    def main_log_file(self) -> Optional[Path]:
        return self.log_dir / f"{self.app_name}.log" if self.log_dir else None

    @property
    def error_log_file(self) -> Optional[Path]:
        return self.log_dir / f"{self.app_name}_errors.log" if self.log_dir else None

    def setup_logging(self,
                      enable_colors: bool = True,
                      max_file_size: int = 10 * 1024 * 1024,  # 10MB
                      backup_count: int = 5):
        """Install console and, when a log directory is configured, file handlers.

        Args:
            enable_colors: Whether to enable colored console output
            max_file_size: Maximum size of the error log before rotation
            backup_count: Number of rotated error logs to keep
        """
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.setLevel(logging.DEBUG)

        level = logging.getLevelName(self.config.level)
        if not isinstance(level, int):
            level = logging.INFO

        detailed_formatter = logging.Formatter(
            '[%(asctime)s] [%(levelname)-8s] [%(name)s:%(funcName)s:%(lineno)d] '
            '[PID:%(process_id)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        simple_formatter = logging.Formatter(
            '[%(asctime)s] [%(levelname)-8s] [%(name)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if enable_colors and sys.stdout.isatty():
            console_handler.setFormatter(ColoredFormatter(
                '[%(asctime)s] [%(levelname)-8s] [%(name)s] - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
        else:
            console_handler.setFormatter(simple_formatter)
        console_handler.addFilter(ContextFilter())
        self._add_handler(root_logger, console_handler)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

            # Main application log file (rotating by time)
            main_file_handler = logging.handlers.TimedRotatingFileHandler(
                self.main_log_file,
                when='midnight',
                interval=1,
                backupCount=30,
                encoding='utf-8'
            )
            main_file_handler.setLevel(logging.DEBUG)
            main_file_handler.setFormatter(detailed_formatter)
            main_file_handler.addFilter(ContextFilter())
            self._add_handler(root_logger, main_file_handler)

            # Error-only log file (rotating by size)
            error_file_handler = logging.handlers.RotatingFileHandler(
                self.error_log_file,
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(detailed_formatter)
            error_file_handler.addFilter(ContextFilter())
            self._add_handler(root_logger, error_file_handler)

        self._configure_third_party_loggers()

        logger = logging.getLogger(__name__)
        logger.info(f"Logging system initialized - Level: {self.config.level}")
        if self.log_dir:
            logger.info(f"Log directory: {self.log_dir}")

    def _add_handler(self, root_logger: logging.Logger, handler: logging.Handler):
        root_logger.addHandler(handler)
        self._handlers.append(handler)

    def _configure_third_party_loggers(self):
        """Configure third-party library loggers to reduce noise."""
        third_party_configs = {
            'paramiko': logging.WARNING,
            'paramiko.transport': logging.ERROR,
            'paramiko.sftp': logging.WARNING,
        }

        for logger_name, level in third_party_configs.items():
            logging.getLogger(logger_name).setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a named logger configured by this manager."""
        return logging.getLogger(name)

    def shutdown(self):
        """Flush and remove every handler installed by this manager."""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            try:
                handler.flush()
                handler.close()
            except Exception as e:
                print(f"Warning: Could not close log handler {handler}: {e}", file=sys.stderr)
            finally:
                root_logger.removeHandler(handler)
        self._handlers = []
