"""Transport-independent SFTP client interface."""

from abc import ABC, abstractmethod
from typing import List


class SFTPError(Exception):
    """Base exception for SFTP operations."""
    pass


class SFTPConnectionError(SFTPError):
    """Raised when connecting or authenticating to the SFTP server fails."""
    pass


class SFTPFileError(SFTPError):
    """Raised when SFTP file operations fail."""
    pass


class SFTPNotConnectedError(SFTPError):
    """Raised when an operation needs a live connection and there is none."""

    def __init__(self, message: str = "Not connected to SFTP server"):
        super().__init__(message)


def join_remote_path(remote_directory: str, file_name: str) -> str:
    """Join a remote directory and a file name with exactly one ``/``.

    ``join_remote_path("/remote", "a.xml")`` and
    ``join_remote_path("/remote/", "a.xml")`` both return ``/remote/a.xml``.
    """
    if remote_directory.endswith('/'):
        return remote_directory + file_name
    return f"{remote_directory}/{file_name}"


class SFTPClient(ABC):
    """Operations the orchestrator needs from an SFTP server.

    Implementations raise :class:`SFTPNotConnectedError` from every remote
    operation while disconnected and never reconnect on their own.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open an authenticated session.

        Raises:
            SFTPConnectionError: If the session cannot be established
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Release the channel and session. Safe to call repeatedly."""

    @abstractmethod
    def is_connected(self) -> bool:
        """True only while both the channel and the session are connected."""

    @abstractmethod
    def list_files(self, remote_directory: str, file_pattern: str) -> List[str]:
        """List regular files in ``remote_directory`` whose names match a glob.

        Args:
            remote_directory: Remote directory to list
            file_pattern: Glob pattern such as ``*.xml``

        Returns:
            Matching file names in the order the server returned them
        """

    @abstractmethod
    def download_file(self, remote_directory: str, file_name: str, local_directory: str) -> str:
        """Download one file into ``local_directory``, creating it if needed.

        Returns:
            Path of the local copy
        """

    @abstractmethod
    def get_file_size(self, remote_directory: str, file_name: str) -> int:
        """Return the size of a remote file in bytes."""

    def download_files(self, remote_directory: str, file_names: List[str], local_directory: str) -> List[str]:
        """Download several files in order. The first failure propagates."""
        return [
            self.download_file(remote_directory, file_name, local_directory)
            for file_name in file_names
        ]

    def __enter__(self) -> 'SFTPClient':
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
