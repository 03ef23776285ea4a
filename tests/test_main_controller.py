"""
Tests for the workflow controller, driven by an in-memory SFTP client.
"""

import stat
from unittest.mock import MagicMock

import paramiko
import pytest

from conftest import FakeSFTPClient
from provider_loader.audit import AuditLogger
from provider_loader.config import ConfigManager
from provider_loader.controller import MainController, ProcessingError
from provider_loader.sftp import ParamikoSFTPClient, SFTPConnectionError, SFTPFileError
from provider_loader.utils.error_handler import ErrorCategory, ErrorHandler, ErrorSeverity, RetryPolicy


PROVIDER_XML = b'<?xml version="1.0"?><providers><provider id="P001"/></providers>'
ARMOURED = b"-----BEGIN PGP MESSAGE-----\n\nhQEMA\n-----END PGP MESSAGE-----\n"


@pytest.fixture
def inbox(tmp_path):
    return tmp_path / "inbox"


@pytest.fixture
def config_manager(write_properties, inbox):
    path = write_properties({"sftp.local.inbox.directory": str(inbox)})
    return ConfigManager(str(path), environ={})


@pytest.fixture
def audit_logger():
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def error_handler():
    return ErrorHandler()


@pytest.fixture
def repository():
    return MagicMock()


def _controller(config_manager, audit_logger, error_handler, sftp_client, repository):
    return MainController(
        config_manager,
        audit_logger,
        error_handler,
        sftp_client=sftp_client,
        repository=repository,
    )


class TestRun:
    """Test a complete run."""

    def test_happy_path(self, config_manager, audit_logger, error_handler, repository, inbox):
        sftp = FakeSFTPClient({"a.xml": PROVIDER_XML, "b.xml": PROVIDER_XML, "readme.txt": b"hi"})
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.files_found == 2
        assert summary.downloaded == 2
        assert summary.download_failures == 0
        assert summary.processed == 2
        assert summary.processing_failures == 0
        assert sorted(p.name for p in inbox.iterdir()) == ["a.xml", "b.xml"]
        assert error_handler.error_history == []
        audit_logger.log_application_start.assert_called_once()
        audit_logger.log_sftp_connection.assert_called_once_with("sftp.example.com", True)

    def test_download_failure_does_not_stop_the_run(self, config_manager, audit_logger, error_handler,
                                                    repository, inbox):
        sftp = FakeSFTPClient(
            {"a.xml": PROVIDER_XML, "b.xml": PROVIDER_XML, "c.xml": PROVIDER_XML},
            failing_downloads=["b.xml"],
        )
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.downloaded == 2
        assert summary.download_failures == 1
        assert summary.downloads_attempted == summary.files_found == 3
        assert [(d.filename, d.success) for d in summary.downloads] == [
            ("a.xml", True), ("b.xml", False), ("c.xml", True)
        ]
        assert "b.xml" in summary.downloads[1].error_message
        assert summary.processed == 2
        audit_logger.log_file_download.assert_any_call(
            "b.xml", 0, False, "Failed to download file: b.xml - connection reset"
        )
        assert [c.category for c in error_handler.error_history] == [ErrorCategory.SFTP_FILE_OPERATION]

    def test_stale_inbox_copy_of_failed_download_is_not_processed(self, config_manager, audit_logger,
                                                                   error_handler, repository, inbox):
        inbox.mkdir(parents=True)
        (inbox / "b.xml").write_bytes(PROVIDER_XML)
        sftp = FakeSFTPClient({"a.xml": PROVIDER_XML, "b.xml": PROVIDER_XML}, failing_sizes=["b.xml"])
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.downloaded == 1
        assert summary.download_failures == 1
        assert summary.processed == 1
        assert summary.processing_failures == 0
        processed = [c.args[1] for c in audit_logger.log_processing_event.call_args_list]
        assert processed == ["a.xml"]

    def test_processing_uses_downloaded_path(self, config_manager, audit_logger, error_handler,
                                             repository, inbox):
        sftp = FakeSFTPClient({"a.xml": PROVIDER_XML})
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.downloads[0].local_path == str(inbox / "a.xml")
        assert summary.processed == 1

    def test_processing_failures_are_counted(self, config_manager, audit_logger, error_handler, repository):
        sftp = FakeSFTPClient({
            "good.xml": PROVIDER_XML,
            "sealed.xml": ARMOURED,
            "broken.xml": b"<providers><provider></providers>",
        })
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.downloaded == 3
        assert summary.processed == 1
        assert summary.processing_failures == 2
        assert [c.category for c in error_handler.error_history] == [
            ErrorCategory.PGP_OPERATION, ErrorCategory.XML_PARSING
        ]
        audit_logger.log_pgp_operation.assert_called_once_with(
            "DECRYPT", "sealed.xml", False, "PGP decryption not yet implemented"
        )

    def test_empty_listing(self, config_manager, audit_logger, error_handler, repository, inbox):
        controller = _controller(config_manager, audit_logger, error_handler, FakeSFTPClient(), repository)

        summary = controller.run()

        assert summary.files_found == 0
        assert summary.downloads == []
        assert inbox.is_dir()


class TestAbortingFailures:
    """Test failures that end the run."""

    def test_connect_failure(self, config_manager, audit_logger, error_handler, repository):
        cause = SFTPConnectionError("Failed to connect to SFTP server: timed out")
        sftp = FakeSFTPClient(connect_error=cause)
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        with pytest.raises(ProcessingError) as exc_info:
            controller.run()

        assert exc_info.value.__cause__ is cause
        audit_logger.log_sftp_connection.assert_called_once_with(
            "sftp.example.com", False, "Failed to connect to SFTP server: timed out"
        )

    def test_list_failure(self, config_manager, audit_logger, error_handler, repository):
        sftp = FakeSFTPClient({"a.xml": PROVIDER_XML}, list_error=SFTPFileError("Failed to list files"))
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        with pytest.raises(ProcessingError, match="Failed to list files"):
            controller.run()


class TestCleanup:
    """Test releasing resources."""

    def test_cleanup_after_failed_run(self, config_manager, audit_logger, error_handler, repository):
        sftp = FakeSFTPClient(list_error=SFTPFileError("Failed to list files"))
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        with pytest.raises(ProcessingError):
            controller.run()
        controller.cleanup()

        assert sftp.disconnect_calls == 1
        assert sftp.is_connected() is False
        repository.disconnect.assert_called_once()
        audit_logger.log_application_stop.assert_called_once()
        audit_logger.close.assert_called_once()

    def test_cleanup_steps_are_independent(self, config_manager, audit_logger, error_handler, repository):
        sftp = FakeSFTPClient(disconnect_error=OSError("socket closed"))
        repository.disconnect.side_effect = RuntimeError("pool gone")
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)
        sftp.connect()

        controller.cleanup()

        assert sftp.disconnect_calls == 1
        repository.disconnect.assert_called_once()
        audit_logger.close.assert_called_once()

    def test_cleanup_skips_disconnect_when_not_connected(self, config_manager, audit_logger,
                                                         error_handler, repository):
        sftp = FakeSFTPClient()
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        controller.cleanup()

        assert sftp.disconnect_calls == 0
        repository.disconnect.assert_called_once()

    def test_builds_default_collaborators(self, config_manager, audit_logger):
        controller = MainController(config_manager, audit_logger)

        assert controller.sftp_client.retry_policy.max_attempts == 3
        assert controller.sftp_client.retry_policy.delay_seconds == 1.0
        assert controller.repository.is_connected() is False
        controller.cleanup()


class TestErrorAccounting:
    """Test how failures end up in the error history."""

    def test_retried_download_failure_is_recorded_once(self, config_manager, audit_logger, repository):
        ssh_client = MagicMock(spec=paramiko.SSHClient)
        session = ssh_client.open_sftp.return_value
        session.getcwd.return_value = "/home/provider_feed"
        session.get_channel.return_value.closed = False
        ssh_client.get_transport.return_value.is_active.return_value = True
        entry = paramiko.SFTPAttributes()
        entry.filename = "a.xml"
        entry.st_mode = stat.S_IFREG | 0o644
        session.listdir_attr.return_value = [entry]
        session.stat.return_value.st_size = 10
        session.get.side_effect = IOError("Connection lost")

        error_handler = ErrorHandler(sleep=MagicMock())
        sftp = ParamikoSFTPClient(
            config_manager.get_sftp_config(),
            retry_policy=RetryPolicy(max_attempts=3),
            error_handler=error_handler,
            ssh_client_factory=lambda: ssh_client,
        )
        controller = _controller(config_manager, audit_logger, error_handler, sftp, repository)

        summary = controller.run()

        assert summary.download_failures == 1
        assert session.get.call_count == 3
        final = [c for c in error_handler.error_history if c.severity != ErrorSeverity.LOW]
        assert [(c.component, c.operation) for c in final] == [("MainController", "download_file")]
        assert len(error_handler.error_history) == 3
