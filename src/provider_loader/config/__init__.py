# Configuration module

from .models import (
    SFTPConfig,
    PGPConfig,
    DatabaseConfig,
    RetryConfig,
    LoggingConfig,
    ProviderRecord,
    ProviderLocation,
    DatabaseStats,
    DownloadResult,
    RunSummary
)
from .settings import ConfigManager, ConfigurationError

__all__ = [
    'SFTPConfig',
    'PGPConfig',
    'DatabaseConfig',
    'RetryConfig',
    'LoggingConfig',
    'ProviderRecord',
    'ProviderLocation',
    'DatabaseStats',
    'DownloadResult',
    'RunSummary',
    'ConfigManager',
    'ConfigurationError'
]
