"""Audit event logging for provider loader operations.

Audit events are formatted as single timestamped lines and written through
an ordinary :class:`logging.Logger`. There is no separate audit store.
"""

import logging
from datetime import datetime
from typing import Optional


TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

AUDIT_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}


class AuditLogger:
    """Formats audit events and writes them to a logger at a fixed level."""

    def __init__(self, logger: Optional[logging.Logger] = None, log_level: Optional[str] = "INFO"):
        """Initialize the audit logger.

        Args:
            logger: Logger the audit lines are written to
            log_level: DEBUG, INFO, WARN or ERROR; anything else means INFO
        """
        self.logger = logger or logging.getLogger(__name__)
        self.log_level = (log_level or "INFO").upper()
        self._level = AUDIT_LEVELS.get(self.log_level, logging.INFO)
        self._closed = False

        self.logger.info(f"Audit Logger initialized - Level: {self.log_level}")

    def log_application_start(self):
        self._log_audit_event(f"[{self._timestamp()}] APPLICATION_START - ProviderLoader application started")

    def log_application_stop(self):
        self._log_audit_event(f"[{self._timestamp()}] APPLICATION_STOP - ProviderLoader application stopped")

    def log_sftp_connection(self, host: str, success: bool, error: Optional[str] = None):
        """Log an SFTP connection attempt."""
        message = f"[{self._timestamp()}] SFTP_CONNECTION - Host: {host}, Status: {self._status(success)}"
        self._log_audit_event(self._with_error(message, success, error))

    def log_file_download(self, file_name: str, file_size: int, success: bool, error: Optional[str] = None):
        """Log a file download.

        Args:
            file_name: Name of the downloaded file
            file_size: Size of the file in bytes
            success: Whether the download succeeded
            error: Error text when it failed
        """
        message = (f"[{self._timestamp()}] FILE_DOWNLOAD - File: {file_name}, Size: {file_size} bytes, "
                   f"Status: {self._status(success)}")
        self._log_audit_event(self._with_error(message, success, error))

    def log_pgp_operation(self, operation: str, file_name: str, success: bool, error: Optional[str] = None):
        """Log a PGP operation such as DECRYPT or VERIFY."""
        message = (f"[{self._timestamp()}] PGP_{operation.upper()} - File: {file_name}, "
                   f"Status: {self._status(success)}")
        self._log_audit_event(self._with_error(message, success, error))

    def log_xml_parsing(self, file_name: str, record_count: int, success: bool, error: Optional[str] = None):
        message = (f"[{self._timestamp()}] XML_PARSING - File: {file_name}, Records: {record_count}, "
                   f"Status: {self._status(success)}")
        self._log_audit_event(self._with_error(message, success, error))

    def log_database_operation(self, operation: str, record_count: int, success: bool,
                               error: Optional[str] = None):
        message = (f"[{self._timestamp()}] DB_{operation.upper()} - Records: {record_count}, "
                   f"Status: {self._status(success)}")
        self._log_audit_event(self._with_error(message, success, error))

    def log_processing_event(self, event_type: str, description: str, success: bool,
                             error: Optional[str] = None):
        """Log a general processing event."""
        message = (f"[{self._timestamp()}] {event_type.upper()} - {description}, "
                   f"Status: {self._status(success)}")
        self._log_audit_event(self._with_error(message, success, error))

    def log_performance(self, operation: str, duration_ms: int, additional_info: Optional[str] = None):
        """Log how long an operation took.

        Args:
            operation: Operation being measured
            duration_ms: Duration in milliseconds
            additional_info: Extra detail appended when not blank
        """
        message = f"[{self._timestamp()}] PERFORMANCE - Operation: {operation}, Duration: {duration_ms} ms"
        if additional_info is not None and str(additional_info).strip():
            message += f", Info: {additional_info}"
        self._log_audit_event(message)

    def flush(self):
        self.logger.debug("Flushing audit logs")

    def close(self):
        """Close the audit logger. Safe to call more than once."""
        if self._closed:
            return
        self.logger.info("Closing audit logger")
        self.flush()
        self._closed = True

    def _log_audit_event(self, message: str):
        self.logger.log(self._level, f"AUDIT - {message}")

    @staticmethod
    def _with_error(message: str, success: bool, error: Optional[str]) -> str:
        if not success and error is not None:
            message += f", Error: {error}"
        return message

    @staticmethod
    def _status(success: bool) -> str:
        return "SUCCESS" if success else "FAILURE"

    @staticmethod
    def _timestamp() -> str:
        return datetime.now().strftime(TIMESTAMP_FORMAT)
