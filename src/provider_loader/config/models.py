"""Configuration and data models for the provider loader."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SFTPConfig:
    """Configuration for the SFTP server connection."""
    host: str
    port: int
    username: str
    remote_directory: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_passphrase: Optional[str] = None
    known_hosts_path: Optional[str] = None
    strict_host_key_checking: bool = True
    local_inbox_directory: str = "./inbox"
    file_pattern: str = "*.xml"
    connection_timeout_ms: int = 30000


@dataclass
class PGPConfig:
    """Configuration for PGP key material."""
    private_key_path: str
    private_key_passphrase: str
    public_key_path: str


@dataclass
class DatabaseConfig:
    """Configuration for the provider database."""
    url: str
    username: str
    password: str
    driver: str = "oracle.jdbc.driver.OracleDriver"


@dataclass
class RetryConfig:
    """Configuration for retrying remote operations."""
    attempts: int = 3
    delay_ms: int = 1000


@dataclass
class LoggingConfig:
    """Configuration for application and audit logging."""
    level: str = "INFO"
    directory: Optional[str] = None
    audit_level: str = "INFO"


@dataclass
class ProviderLocation:
    """A single practice location of a provider."""
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class ProviderRecord:
    """Provider information parsed from a provider extract."""
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    provider_type: Optional[str] = None
    specialties: List[str] = field(default_factory=list)
    locations: List[ProviderLocation] = field(default_factory=list)
    additional_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DatabaseStats:
    """Row counts reported by the provider repository."""
    total_providers: int = 0
    total_locations: int = 0
    total_specialties: int = 0
    last_update_time: Optional[str] = None


@dataclass
class DownloadResult:
    """Outcome of a single file transfer."""
    filename: str
    size: int
    success: bool
    error_message: Optional[str] = None
    local_path: Optional[str] = None


@dataclass
class RunSummary:
    """Counts collected over one workflow run."""
    files_found: int = 0
    downloaded: int = 0
    download_failures: int = 0
    processed: int = 0
    processing_failures: int = 0
    downloads: List[DownloadResult] = field(default_factory=list)

    @property
    def downloads_attempted(self) -> int:
        return self.downloaded + self.download_failures
