# Utilities module

from .error_handler import (
    ErrorHandler,
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    RetryPolicy,
    NotImplementedFeatureError
)
from .logging_config import LoggingManager

__all__ = [
    'ErrorHandler',
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'RetryPolicy',
    'NotImplementedFeatureError',
    'LoggingManager'
]
