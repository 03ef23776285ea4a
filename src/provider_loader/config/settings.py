"""Configuration manager for the provider loader."""

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values

from .models import (
    SFTPConfig, PGPConfig, DatabaseConfig, RetryConfig, LoggingConfig
)


logger = logging.getLogger(__name__)

DEFAULT_PROPERTIES_FILE = "application.properties"
CONFIG_PATH_ENV_VAR = "PROVIDER_LOADER_CONFIG"

# sftp.password is checked separately since key authentication can replace it
REQUIRED_KEYS = [
    'sftp.host',
    'sftp.username',
    'sftp.remote.directory',
    'pgp.private.key.path',
    'pgp.private.key.passphrase',
    'pgp.public.key.path',
    'db.url',
    'db.username',
    'db.password',
]

SECRET_KEYS = {
    'sftp.password',
    'sftp.private.key.passphrase',
    'pgp.private.key.passphrase',
    'db.password',
}

TRUE_VALUES = {'true', 'yes', '1', 'on'}
FALSE_VALUES = {'false', 'no', '0', 'off'}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


def env_var_name(key: str) -> str:
    """Return the environment variable that overrides a property key.

    ``sftp.private.key.path`` becomes ``SFTP_PRIVATE_KEY_PATH``.
    """
    return key.upper().replace('.', '_')


class ConfigManager:
    """Loads, validates and exposes the application properties.

    Properties are read once from a ``key=value`` file. For every key an
    environment variable (see :func:`env_var_name`) takes precedence over the
    file, so secrets can be supplied without writing them to disk.
    """

    def __init__(self, properties_path: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Load and validate configuration.

        Args:
            properties_path: Path to the properties file. Defaults to the
                ``PROVIDER_LOADER_CONFIG`` environment variable, then
                ``application.properties`` in the working directory.
            environ: Mapping used for overrides, ``os.environ`` by default.

        Raises:
            ConfigurationError: If the file is missing or a required key is
                absent, blank or malformed.
        """
        self._environ = os.environ if environ is None else environ
        self.properties_path = Path(
            properties_path
            or self._environ.get(CONFIG_PATH_ENV_VAR)
            or DEFAULT_PROPERTIES_FILE
        )
        self._properties = self._load_properties()
        self._validate_required_config()
        logger.info(f"Configuration loaded successfully from {self.properties_path}")

    def _load_properties(self) -> Dict[str, Optional[str]]:
        """Read the raw key/value pairs from the properties file."""
        if not self.properties_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {self.properties_path}")

        try:
            self._check_properties_syntax(self.properties_path.read_text(encoding='utf-8'))
            # interpolation would mangle passwords that contain '$'
            return dict(dotenv_values(self.properties_path, interpolate=False, encoding='utf-8'))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {self.properties_path}: {e}"
            ) from e

    def _check_properties_syntax(self, text: str) -> None:
        """Reject Java properties forms that dotenv would silently skip or misread.

        Only ``key=value`` lines and ``#`` comments are supported.

        Raises:
            ConfigurationError: Naming the first offending line
        """
        for line_number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue

            if stripped.startswith('!'):
                problem = "'!' comments are not supported, use '#'"
            elif stripped.endswith('\\'):
                problem = "line continuations are not supported"
            elif '=' not in stripped:
                problem = "expected key=value"
            else:
                continue

            raise ConfigurationError(f"{self.properties_path}:{line_number}: {problem}")

    def _raw_value(self, key: str) -> Optional[str]:
        value = self._environ.get(env_var_name(key))
        if value is None or not value.strip():
            value = self._properties.get(key)
        if value is None or not value.strip():
            return None
        return value.strip()

    def _validate_required_config(self) -> None:
        """Validate that all required configuration is present and well-typed."""
        missing_fields: List[str] = [key for key in REQUIRED_KEYS if self._raw_value(key) is None]

        if self._raw_value('sftp.password') is None and self._raw_value('sftp.private.key.path') is None:
            missing_fields.append('sftp.password')

        if missing_fields:
            raise ConfigurationError(
                f"Required property not found or empty: {', '.join(missing_fields)}"
            )

        # Build the typed views once so malformed numbers fail at startup
        self.get_sftp_config()
        self.get_retry_config()
        self.get_logging_config()

    def get_property(self, key: str) -> str:
        """Get a required property.

        Raises:
            ConfigurationError: If the key is absent or blank.
        """
        value = self._raw_value(key)
        if value is None:
            raise ConfigurationError(f"Required property not found or empty: {key}")
        return value

    def get_optional_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get an optional property, falling back to ``default`` when absent or blank."""
        value = self._raw_value(key)
        return default if value is None else value

    def get_int_property(self, key: str, default: int, minimum: Optional[int] = None,
                         maximum: Optional[int] = None) -> int:
        """Get an optional integer property with range validation."""
        raw = self._raw_value(key)
        if raw is None:
            return default

        try:
            value = int(raw)
        except ValueError as e:
            raise ConfigurationError(f"Property {key} must be an integer, got '{raw}'") from e

        if minimum is not None and value < minimum:
            raise ConfigurationError(f"Property {key} must be at least {minimum}, got {value}")
        if maximum is not None and value > maximum:
            raise ConfigurationError(f"Property {key} must be at most {maximum}, got {value}")
        return value

    def get_bool_property(self, key: str, default: bool) -> bool:
        """Get an optional boolean property."""
        raw = self._raw_value(key)
        if raw is None:
            return default

        lowered = raw.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigurationError(f"Property {key} must be true or false, got '{raw}'")

    def get_sftp_config(self) -> SFTPConfig:
        """Get SFTP server configuration."""
        return SFTPConfig(
            host=self.get_property('sftp.host'),
            port=self.get_int_property('sftp.port', 22, minimum=1, maximum=65535),
            username=self.get_property('sftp.username'),
            password=self.get_optional_property('sftp.password'),
            private_key_path=self.get_optional_property('sftp.private.key.path'),
            private_key_passphrase=self.get_optional_property('sftp.private.key.passphrase'),
            known_hosts_path=self.get_optional_property('sftp.known.hosts.path'),
            strict_host_key_checking=self.get_bool_property('sftp.strict.host.key.checking', True),
            remote_directory=self.get_property('sftp.remote.directory'),
            local_inbox_directory=self.get_optional_property('sftp.local.inbox.directory', './inbox'),
            file_pattern=self.get_optional_property('file.pattern.xml', '*.xml'),
            connection_timeout_ms=self.get_int_property('app.connection.timeout.ms', 30000, minimum=0)
        )

    def get_pgp_config(self) -> PGPConfig:
        """Get PGP key configuration."""
        return PGPConfig(
            private_key_path=self.get_property('pgp.private.key.path'),
            private_key_passphrase=self.get_property('pgp.private.key.passphrase'),
            public_key_path=self.get_property('pgp.public.key.path')
        )

    def get_database_config(self) -> DatabaseConfig:
        """Get provider database configuration."""
        return DatabaseConfig(
            url=self.get_property('db.url'),
            username=self.get_property('db.username'),
            password=self.get_property('db.password'),
            driver=self.get_optional_property('db.driver', 'oracle.jdbc.driver.OracleDriver')
        )

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration for remote operations."""
        return RetryConfig(
            attempts=self.get_int_property('app.retry.attempts', 3, minimum=1),
            delay_ms=self.get_int_property('app.retry.delay.ms', 1000, minimum=0)
        )

    def get_logging_config(self) -> LoggingConfig:
        """Get application and audit logging configuration."""
        return LoggingConfig(
            level=self.get_optional_property('app.log.level', 'INFO').upper(),
            directory=self.get_optional_property('app.log.directory'),
            audit_level=self.get_optional_property('audit.log.level', 'INFO').upper()
        )

    def get_config_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a specific configuration value."""
        return self.get_optional_property(key, default)

    def get_all_properties(self) -> Dict[str, Optional[str]]:
        """Get a copy of all file properties for debugging, with secrets masked."""
        return {
            key: ('********' if key in SECRET_KEYS and value else value)
            for key, value in self._properties.items()
        }
