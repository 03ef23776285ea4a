"""Paramiko-backed SFTP client for fetching provider extracts."""

import fnmatch
import logging
import os
import stat
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import paramiko

from ..config.models import SFTPConfig
from ..utils.error_handler import ErrorHandler, ErrorCategory, RetryPolicy
from .client import (
    SFTPClient, SFTPConnectionError, SFTPFileError, SFTPNotConnectedError,
    join_remote_path
)


logger = logging.getLogger(__name__)


class ParamikoSFTPClient(SFTPClient):
    """SFTP client built on ``paramiko.SSHClient``.

    Every remote operation runs through the configured :class:`RetryPolicy`.
    Host keys are verified against ``known_hosts_path`` (or the user's system
    known_hosts) and unknown hosts are rejected unless strict host key
    checking has been switched off.
    """

    def __init__(self, config: SFTPConfig,
                 retry_policy: Optional[RetryPolicy] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 ssh_client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient):
        """Initialize the SFTP client.

        Args:
            config: SFTP configuration
            retry_policy: Retry policy for remote operations; one attempt by default
            error_handler: Error handler used to record failed attempts
            ssh_client_factory: Callable returning a new ``SSHClient``
        """
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy.no_retry()
        self.error_handler = error_handler or ErrorHandler()
        self._ssh_client_factory = ssh_client_factory
        self._ssh_client: Optional[paramiko.SSHClient] = None
        self._sftp_client: Optional[paramiko.SFTPClient] = None

    def connect(self) -> None:
        self._with_retry(
            self._establish_connection,
            ErrorCategory.SFTP_CONNECTION,
            "connect",
            {"host": self.config.host, "port": self.config.port}
        )

    def _establish_connection(self) -> None:
        """Open the SSH session and the SFTP channel once."""
        config = self.config
        logger.info(f"Connecting to SFTP server: {config.host}:{config.port}")

        try:
            ssh_client = self._ssh_client_factory()
            self._ssh_client = ssh_client
            self._configure_host_keys(ssh_client)

            pkey = self._load_private_key()
            timeout = config.connection_timeout_ms / 1000.0 if config.connection_timeout_ms > 0 else None

            ssh_client.connect(
                hostname=config.host,
                port=config.port,
                username=config.username,
                password=config.password,
                pkey=pkey,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=False,
                allow_agent=False
            )
            logger.info("Session connected successfully")

            self._sftp_client = ssh_client.open_sftp()
            logger.info("SFTP channel connected successfully")

        except Exception as e:
            logger.error(f"Failed to connect to SFTP server {config.host}:{config.port}: {e}")
            self.disconnect()
            raise SFTPConnectionError(f"Failed to connect to SFTP server: {e}") from e

    def _configure_host_keys(self, ssh_client: paramiko.SSHClient) -> None:
        if self.config.known_hosts_path:
            known_hosts = os.path.expanduser(self.config.known_hosts_path)
            ssh_client.load_host_keys(known_hosts)
            logger.debug(f"Using known hosts file: {known_hosts}")
        else:
            ssh_client.load_system_host_keys()
            logger.debug("Using system known hosts")

        if self.config.strict_host_key_checking:
            ssh_client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            logger.warning("Strict host key checking is disabled, unknown host keys will be accepted")
            ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    def _load_private_key(self) -> Optional[paramiko.PKey]:
        if not self.config.private_key_path:
            return None

        key_path = os.path.expanduser(self.config.private_key_path)
        logger.debug(f"Using private key authentication: {key_path}")
        return paramiko.PKey.from_path(key_path, passphrase=self.config.private_key_passphrase)

    def disconnect(self) -> None:
        was_open = self._sftp_client is not None or self._ssh_client is not None

        try:
            if self._sftp_client is not None:
                try:
                    self._sftp_client.close()
                    logger.debug("SFTP channel disconnected")
                except Exception as e:
                    logger.warning(f"Error closing SFTP channel: {e}")

            if self._ssh_client is not None:
                try:
                    self._ssh_client.close()
                    logger.debug("Session disconnected")
                except Exception as e:
                    logger.warning(f"Error closing SSH session: {e}")
        finally:
            self._sftp_client = None
            self._ssh_client = None

        if was_open:
            logger.info("Disconnected from SFTP server")

    def is_connected(self) -> bool:
        if self._sftp_client is None or self._ssh_client is None:
            return False

        channel = self._sftp_client.get_channel()
        transport = self._ssh_client.get_transport()
        return (channel is not None and not channel.closed
                and transport is not None and transport.is_active())

    def list_files(self, remote_directory: str, file_pattern: str) -> List[str]:
        self._require_connection()
        return self._with_retry(
            lambda: self._list_files_once(remote_directory, file_pattern),
            ErrorCategory.SFTP_FILE_OPERATION,
            "list_files",
            {"remote_directory": remote_directory, "file_pattern": file_pattern}
        )

    def _list_files_once(self, remote_directory: str, file_pattern: str) -> List[str]:
        logger.debug(f"Listing files in directory: {remote_directory} with pattern: {file_pattern}")
        sftp = self._sftp_client
        previous_cwd = sftp.getcwd()

        try:
            sftp.chdir(remote_directory)
            entries = sftp.listdir_attr('.')
        except Exception as e:
            logger.error(f"Failed to list files in directory {remote_directory}: {e}")
            raise SFTPFileError(f"Failed to list files: {e}") from e
        finally:
            # Later downloads use paths relative to the session's starting directory
            sftp.chdir(previous_cwd)

        file_names = [
            entry.filename for entry in entries
            if not _is_directory(entry) and fnmatch.fnmatchcase(entry.filename, file_pattern)
        ]

        logger.info(f"Found {len(file_names)} files matching pattern {file_pattern} in directory {remote_directory}")
        return file_names

    def download_file(self, remote_directory: str, file_name: str, local_directory: str) -> str:
        self._require_connection()

        try:
            Path(local_directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SFTPFileError(f"Failed to create local directory {local_directory}: {e}") from e

        remote_path = join_remote_path(remote_directory, file_name)
        local_path = os.path.join(local_directory, file_name)

        self._with_retry(
            lambda: self._download_once(remote_path, local_path, file_name),
            ErrorCategory.SFTP_FILE_OPERATION,
            "download_file",
            {"remote_path": remote_path, "local_path": local_path}
        )
        return local_path

    def _download_once(self, remote_path: str, local_path: str, file_name: str) -> None:
        logger.debug(f"Downloading file: {remote_path} to {local_path}")

        try:
            self._sftp_client.get(remote_path, local_path)
        except Exception as e:
            logger.error(f"Failed to download file {file_name}: {e}")
            _remove_partial_file(local_path)
            raise SFTPFileError(f"Failed to download file: {file_name} - {e}") from e

        logger.info(f"Successfully downloaded file: {file_name} to {local_path}")

    def get_file_size(self, remote_directory: str, file_name: str) -> int:
        self._require_connection()
        remote_path = join_remote_path(remote_directory, file_name)
        return self._with_retry(
            lambda: self._stat_size_once(remote_path, file_name),
            ErrorCategory.SFTP_FILE_OPERATION,
            "get_file_size",
            {"remote_path": remote_path}
        )

    def _stat_size_once(self, remote_path: str, file_name: str) -> int:
        try:
            attrs = self._sftp_client.stat(remote_path)
        except Exception as e:
            logger.error(f"Failed to get file size for {file_name}: {e}")
            raise SFTPFileError(f"Failed to get file size: {file_name} - {e}") from e
        return int(attrs.st_size or 0)

    def _require_connection(self) -> None:
        if not self.is_connected():
            raise SFTPNotConnectedError()

    def _with_retry(self, operation: Callable[[], Any], category: ErrorCategory,
                    operation_name: str, additional_data: Dict[str, Any]) -> Any:
        return self.error_handler.execute_with_retry(
            operation=operation,
            policy=self.retry_policy,
            category=category,
            component="ParamikoSFTPClient",
            operation_name=operation_name,
            additional_data=additional_data
        )


def _is_directory(entry: paramiko.SFTPAttributes) -> bool:
    return entry.st_mode is not None and stat.S_ISDIR(entry.st_mode)


def _remove_partial_file(local_path: str) -> None:
    if os.path.exists(local_path):
        try:
            os.remove(local_path)
        except OSError as e:
            logger.warning(f"Could not remove partial download {local_path}: {e}")
