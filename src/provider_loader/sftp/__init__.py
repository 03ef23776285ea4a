"""SFTP module for remote file operations."""

from .client import (
    SFTPClient, SFTPError, SFTPConnectionError, SFTPFileError, SFTPNotConnectedError,
    join_remote_path
)
from .manager import ParamikoSFTPClient

__all__ = [
    'SFTPClient', 'SFTPError', 'SFTPConnectionError', 'SFTPFileError', 'SFTPNotConnectedError',
    'ParamikoSFTPClient', 'join_remote_path'
]
