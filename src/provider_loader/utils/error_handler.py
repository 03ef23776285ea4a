"""Error handling, retry logic and error reporting for the provider loader."""

import logging
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config.models import RetryConfig


class ErrorCategory(Enum):
    """Categories of errors that can occur in the system."""
    CONFIGURATION = "configuration"
    SFTP_CONNECTION = "sftp_connection"
    SFTP_FILE_OPERATION = "sftp_file_operation"
    FILE_PROCESSING = "file_processing"
    PGP_OPERATION = "pgp_operation"
    XML_PARSING = "xml_parsing"
    DATABASE_OPERATION = "database_operation"
    SYSTEM_RESOURCE = "system_resource"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # System cannot continue
    HIGH = "high"         # Major functionality affected
    MEDIUM = "medium"     # Some functionality affected
    LOW = "low"          # Minor issues, system continues normally


class NotImplementedFeatureError(Exception):
    """Base for errors raised by operations that have no implementation yet.

    Subclasses are also part of their component's error hierarchy, so callers
    can catch either "this component failed" or "this feature is absent".
    """

    def __init__(self, feature: str, message: Optional[str] = None):
        self.feature = feature
        super().__init__(message or f"{feature} not yet implemented")


@dataclass
class ErrorContext:
    """Context information for an error occurrence."""
    timestamp: datetime = field(default_factory=datetime.now)
    category: ErrorCategory = ErrorCategory.UNKNOWN
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    component: str = ""
    operation: str = ""
    error_message: str = ""
    exception_type: str = ""
    stack_trace: str = ""
    additional_data: Dict[str, Any] = field(default_factory=dict)
    retry_count: int = 0
    max_retries: int = 0
    is_recoverable: bool = True


@dataclass
class RetryPolicy:
    """How often and how patiently a failing operation is retried."""
    max_attempts: int = 1
    delay_seconds: float = 0.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> 'RetryPolicy':
        return cls(max_attempts=max(1, config.attempts), delay_seconds=config.delay_ms / 1000.0)

    @classmethod
    def no_retry(cls) -> 'RetryPolicy':
        return cls(max_attempts=1, delay_seconds=0.0)


# Exception type names that retrying cannot fix
NON_RECOVERABLE_TYPES = [
    'FileNotFoundError',
    'PermissionError',
    'AuthenticationException',
    'BadAuthenticationType',
    'PasswordRequiredException',
    'BadHostKeyException',
    'SFTPNotConnectedError',
    'ConfigurationError',
    'ValueError',
    'TypeError',
    'AttributeError'
]

NON_RECOVERABLE_PATTERNS = [
    'authentication failed',
    'not found in known_hosts',
    'permission denied',
    'no such file',
    'not connected'
]


class ErrorHandler:
    """Categorised error handler with retry logic and context tracking.

    One instance is created by the entry point and handed to every component
    that reports errors.
    """

    def __init__(self, history_limit: int = 1000, sleep: Callable[[float], None] = time.sleep):
        """Initialize the error handler.

        Args:
            history_limit: Number of error contexts kept in memory
            sleep: Function used to wait between retry attempts
        """
        self.logger = logging.getLogger(__name__)
        self.history_limit = history_limit
        self._sleep = sleep

        # Error tracking
        self.error_history: List[ErrorContext] = []
        self.error_counts: Dict[str, int] = {}
        self.last_error_times: Dict[str, datetime] = {}

        self.logger.debug("ErrorHandler initialized successfully")

    def handle_error(self,
                     error: Exception,
                     category: ErrorCategory,
                     severity: ErrorSeverity,
                     component: str,
                     operation: str,
                     additional_data: Optional[Dict[str, Any]] = None,
                     retry_count: int = 0,
                     max_retries: int = 0) -> ErrorContext:
        """Record and log an error.

        Args:
            error: The exception that occurred
            category: Category of the error
            severity: Severity level of the error
            component: Component where the error occurred
            operation: Operation being performed when error occurred
            additional_data: Additional context data
            retry_count: Current retry attempt number
            max_retries: Maximum number of retries configured

        Returns:
            ErrorContext object with error details
        """
        context = ErrorContext(
            category=category,
            severity=severity,
            component=component,
            operation=operation,
            error_message=str(error),
            exception_type=type(error).__name__,
            stack_trace=''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            additional_data=additional_data or {},
            retry_count=retry_count,
            max_retries=max_retries,
            is_recoverable=self.is_recoverable_error(error, category)
        )

        self._log_error(context)
        self._track_error_statistics(context)

        self.error_history.append(context)
        if len(self.error_history) > self.history_limit:
            self.error_history.pop(0)

        return context

    def execute_with_retry(self,
                           operation: Callable[[], Any],
                           policy: RetryPolicy,
                           category: ErrorCategory,
                           component: str,
                           operation_name: str,
                           additional_data: Optional[Dict[str, Any]] = None) -> Any:
        """Execute an operation, retrying recoverable failures.

        Args:
            operation: Function to execute
            policy: Retry policy to apply
            category: Error category used for logging
            component: Component performing the operation
            operation_name: Name of the operation for logging
            additional_data: Additional context data

        Returns:
            Result of the operation

        Raises:
            Exception: The last error once attempts are exhausted or the
                error is not recoverable
        """
        max_attempts = max(1, policy.max_attempts)

        for attempt in range(max_attempts):
            if attempt > 0:
                self.logger.info(
                    f"Retrying {operation_name} in {policy.delay_seconds:.2f} seconds "
                    f"(attempt {attempt + 1}/{max_attempts})"
                )
                if policy.delay_seconds > 0:
                    self._sleep(policy.delay_seconds)

            try:
                result = operation()
            except Exception as e:
                is_last = attempt == max_attempts - 1

                # The error that escapes is recorded by the caller
                if not self.is_recoverable_error(e, category):
                    if max_attempts > 1 and not is_last:
                        self.logger.error(f"Non-recoverable error in {operation_name}, stopping retries")
                    raise
                if is_last:
                    if max_attempts > 1:
                        self.logger.error(f"Operation {operation_name} failed after {max_attempts} attempts")
                    raise

                self.handle_error(
                    error=e,
                    category=category,
                    severity=ErrorSeverity.LOW,
                    component=component,
                    operation=operation_name,
                    additional_data=additional_data,
                    retry_count=attempt,
                    max_retries=max_attempts - 1
                )
                continue

            if attempt > 0:
                self.logger.info(f"Operation {operation_name} succeeded on attempt {attempt + 1}")
            return result

    def _log_error(self, context: ErrorContext):
        """Log error with a level matching its severity."""
        log_message = (f"[{context.category.value.upper()}] {context.component}.{context.operation}: "
                       f"{context.error_message}")

        if context.retry_count > 0:
            log_message += f" (retry {context.retry_count}/{context.max_retries})"

        if context.additional_data:
            log_message += f" | Context: {context.additional_data}"

        if context.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
        elif context.severity == ErrorSeverity.HIGH:
            self.logger.error(log_message)
        elif context.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        if context.stack_trace:
            self.logger.debug(f"Stack trace for {context.component}.{context.operation}:\n{context.stack_trace}")

    def _track_error_statistics(self, context: ErrorContext):
        """Track error statistics for reporting."""
        error_key = f"{context.category.value}:{context.component}:{context.operation}"

        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1
        self.last_error_times[error_key] = context.timestamp

        if self.error_counts[error_key] % 10 == 0:
            self.logger.warning(f"Error {error_key} has occurred {self.error_counts[error_key]} times")

    def is_recoverable_error(self, error: Exception, category: ErrorCategory) -> bool:
        """Determine if an error is transient and worth retrying."""
        if category == ErrorCategory.CONFIGURATION:
            return False

        # Wrapped errors are judged together with their cause
        candidates = [error]
        if error.__cause__ is not None:
            candidates.append(error.__cause__)

        for candidate in candidates:
            if isinstance(candidate, NotImplementedFeatureError):
                return False

            if type(candidate).__name__ in NON_RECOVERABLE_TYPES:
                return False

            message = str(candidate).lower()
            if any(pattern in message for pattern in NON_RECOVERABLE_PATTERNS):
                return False

        return True

    def get_error_statistics(self, hours: int = 24) -> Dict[str, Any]:
        """Get error statistics for the specified time period.

        Args:
            hours: Number of hours to look back

        Returns:
            Dictionary containing error statistics
        """
        cutoff_time = datetime.now() - timedelta(hours=hours)
        recent_errors = [e for e in self.error_history if e.timestamp >= cutoff_time]

        stats = {
            "total_errors": len(recent_errors),
            "time_period_hours": hours,
            "errors_by_category": {},
            "errors_by_severity": {},
            "errors_by_component": {},
            "recent_critical_errors": []
        }

        for error in recent_errors:
            category = error.category.value
            stats["errors_by_category"][category] = stats["errors_by_category"].get(category, 0) + 1

            severity = error.severity.value
            stats["errors_by_severity"][severity] = stats["errors_by_severity"].get(severity, 0) + 1

            component = error.component
            stats["errors_by_component"][component] = stats["errors_by_component"].get(component, 0) + 1

            if error.severity == ErrorSeverity.CRITICAL:
                stats["recent_critical_errors"].append({
                    "timestamp": error.timestamp.isoformat(),
                    "component": error.component,
                    "operation": error.operation,
                    "message": error.error_message
                })

        return stats

    def generate_error_report(self, hours: int = 24) -> str:
        """Generate a human-readable error report.

        Args:
            hours: Number of hours to include in the report

        Returns:
            Formatted error report string
        """
        stats = self.get_error_statistics(hours)

        report = f"""
ERROR REPORT - Last {hours} Hours
{'=' * 50}

SUMMARY:
- Total Errors: {stats['total_errors']}
- Time Period: {hours} hours

ERRORS BY SEVERITY:
"""

        for severity, count in stats['errors_by_severity'].items():
            report += f"- {severity.upper()}: {count}\n"

        report += "\nERRORS BY CATEGORY:\n"
        for category, count in stats['errors_by_category'].items():
            report += f"- {category.upper()}: {count}\n"

        report += "\nERRORS BY COMPONENT:\n"
        for component, count in stats['errors_by_component'].items():
            report += f"- {component}: {count}\n"

        if stats['recent_critical_errors']:
            report += "\nRECENT CRITICAL ERRORS:\n"
            for error in stats['recent_critical_errors'][-5:]:
                report += f"- {error['timestamp']}: {error['component']}.{error['operation']} - {error['message']}\n"

        return report
