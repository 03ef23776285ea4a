"""
pytest configuration for provider loader tests.

Adds src directory to Python path for imports and provides shared fixtures:
a properties file writer and an in-memory SFTP client.
"""

import fnmatch
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from provider_loader.sftp.client import (  # noqa: E402
    SFTPClient, SFTPFileError, SFTPNotConnectedError
)


BASE_PROPERTIES = {
    "sftp.host": "sftp.example.com",
    "sftp.username": "provider_feed",
    "sftp.password": "secret",
    "sftp.remote.directory": "/outbound/providers",
    "pgp.private.key.path": "/keys/private.asc",
    "pgp.private.key.passphrase": "pgp-pass",
    "pgp.public.key.path": "/keys/public.asc",
    "db.url": "jdbc:oracle:thin:@localhost:1521/XE",
    "db.username": "loader",
    "db.password": "db-pass",
}


@pytest.fixture
def write_properties(tmp_path):
    """Write a properties file from the base keys plus overrides.

    An override value of ``None`` removes the key.
    """
    def _write(overrides: Optional[Dict[str, Optional[str]]] = None, name: str = "application.properties") -> Path:
        properties = dict(BASE_PROPERTIES)
        for key, value in (overrides or {}).items():
            if value is None:
                properties.pop(key, None)
            else:
                properties[key] = value

        path = tmp_path / name
        lines = ["# test configuration"] + [f"{key}={value}" for key, value in properties.items()]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


class FakeSFTPClient(SFTPClient):
    """In-memory SFTP server holding ``{file name: content}`` in listing order."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None,
                 connect_error: Optional[Exception] = None,
                 list_error: Optional[Exception] = None,
                 failing_downloads: Iterable[str] = (),
                 disconnect_error: Optional[Exception] = None,
                 failing_sizes: Iterable[str] = ()):
        self.files = dict(files or {})
        self.connect_error = connect_error
        self.list_error = list_error
        self.failing_downloads = set(failing_downloads)
        self.disconnect_error = disconnect_error
        self.failing_sizes = set(failing_sizes)
        self.connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False
        if self.disconnect_error is not None:
            raise self.disconnect_error

    def is_connected(self) -> bool:
        return self.connected

    def list_files(self, remote_directory, file_pattern):
        self._require_connection()
        if self.list_error is not None:
            raise self.list_error
        return [name for name in self.files if fnmatch.fnmatchcase(name, file_pattern)]

    def download_file(self, remote_directory, file_name, local_directory):
        self._require_connection()
        if file_name in self.failing_downloads:
            raise SFTPFileError(f"Failed to download file: {file_name} - connection reset")
        local_path = Path(local_directory) / file_name
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(self.files[file_name])
        return str(local_path)

    def get_file_size(self, remote_directory, file_name):
        self._require_connection()
        if file_name in self.failing_sizes:
            raise SFTPFileError(f"Failed to get file size: {file_name} - no such file")
        return len(self.files[file_name])

    def _require_connection(self):
        if not self.connected:
            raise SFTPNotConnectedError()
