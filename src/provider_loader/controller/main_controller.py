"""Main processing controller for the provider loader workflow."""

import logging
import time
from pathlib import Path
from typing import List, Optional

from ..audit.logger import AuditLogger
from ..config.models import DownloadResult, RunSummary
from ..config.settings import ConfigManager
from ..db.repository import ProviderRepository, DatabaseError
from ..parser.xml_parser import ProviderXmlParser, XmlParsingError
from ..pgp.service import PGPService, PGPError, PGP_EXTENSIONS
from ..sftp.client import SFTPClient
from ..sftp.manager import ParamikoSFTPClient
from ..utils.error_handler import ErrorHandler, ErrorCategory, ErrorSeverity, RetryPolicy


logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Raised when the workflow cannot continue."""
    pass


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _decrypted_path(encrypted_path: Path) -> Path:
    if encrypted_path.suffix.lower() in PGP_EXTENSIONS:
        return encrypted_path.with_suffix('')
    return encrypted_path.with_name(encrypted_path.name + '.decrypted')


class MainController:
    """Runs the provider loader workflow.

    The run is strictly linear: connect, list, download every file (a failed
    download does not stop the others), process every downloaded file, and
    report. :meth:`cleanup` releases all resources and must be called on
    every exit path.
    """

    def __init__(self, config_manager: ConfigManager,
                 audit_logger: AuditLogger,
                 error_handler: Optional[ErrorHandler] = None,
                 sftp_client: Optional[SFTPClient] = None,
                 pgp_service: Optional[PGPService] = None,
                 xml_parser: Optional[ProviderXmlParser] = None,
                 repository: Optional[ProviderRepository] = None):
        """Initialize the controller and any collaborator not supplied.

        Args:
            config_manager: Loaded configuration
            audit_logger: Audit logger for lifecycle and operation events
            error_handler: Error handler shared with the components
            sftp_client: SFTP client, a ``ParamikoSFTPClient`` by default
            pgp_service: PGP service
            xml_parser: Provider XML parser
            repository: Provider repository
        """
        self.config_manager = config_manager
        self.audit_logger = audit_logger
        self.error_handler = error_handler or ErrorHandler()

        self.sftp_config = config_manager.get_sftp_config()
        self.retry_policy = RetryPolicy.from_config(config_manager.get_retry_config())

        self.sftp_client = sftp_client or ParamikoSFTPClient(
            self.sftp_config,
            retry_policy=self.retry_policy,
            error_handler=self.error_handler
        )
        self.pgp_service = pgp_service or PGPService(config_manager.get_pgp_config())
        self.xml_parser = xml_parser or ProviderXmlParser()
        self.repository = repository or ProviderRepository(config_manager.get_database_config())

        self.inbox_path = Path(self.sftp_config.local_inbox_directory)

        self.audit_logger.log_application_start()
        logger.info("MainController initialized successfully")
        logger.info(f"Remote directory: {self.sftp_config.remote_directory}, "
                    f"pattern: {self.sftp_config.file_pattern}, inbox: {self.inbox_path}")

    def run(self) -> RunSummary:
        """Run the workflow once.

        Returns:
            RunSummary: Counts collected during the run

        Raises:
            ProcessingError: If connecting or listing fails, or anything
                else escapes the per-file handling
        """
        logger.info("Starting ProviderLoader workflow...")
        summary = RunSummary()

        try:
            logger.info("Step 1: Connecting to SFTP server")
            self._connect_to_sftp()

            logger.info("Step 2: Listing XML files")
            file_names = self._list_xml_files()
            summary.files_found = len(file_names)

            logger.info("Step 3: Downloading XML files")
            self._download_xml_files(file_names, summary)

            logger.info("Step 4: Processing downloaded files")
            self._process_downloaded_files(summary)

        except Exception as e:
            logger.error(f"Workflow failed: {e}")
            self.audit_logger.log_processing_event("WORKFLOW", "Main workflow execution", False, str(e))
            self.error_handler.handle_error(
                error=e,
                category=ErrorCategory.SYSTEM_RESOURCE,
                severity=ErrorSeverity.CRITICAL,
                component="MainController",
                operation="run"
            )
            raise ProcessingError(f"Workflow failed: {e}") from e

        logger.info("ProviderLoader workflow completed successfully")
        logger.info(f"  • Files found: {summary.files_found}")
        logger.info(f"  • Files downloaded: {summary.downloaded}")
        logger.info(f"  • Files processed: {summary.processed}")
        return summary

    def _connect_to_sftp(self) -> None:
        host = self.sftp_config.host
        logger.info(f"Connecting to SFTP server: {host}:{self.sftp_config.port}")
        start = time.monotonic()

        try:
            self.sftp_client.connect()
        except Exception as e:
            self.audit_logger.log_sftp_connection(host, False, str(e))
            raise

        self.audit_logger.log_sftp_connection(host, True)
        self.audit_logger.log_performance("SFTP_CONNECTION", _elapsed_ms(start))
        logger.info("Successfully connected to SFTP server")

    def _list_xml_files(self) -> List[str]:
        remote_directory = self.sftp_config.remote_directory
        logger.info(f"Listing XML files in remote directory: {remote_directory}")
        start = time.monotonic()

        file_names = self.sftp_client.list_files(remote_directory, self.sftp_config.file_pattern)

        self.audit_logger.log_performance("LIST_FILES", _elapsed_ms(start), f"{len(file_names)} files found")
        logger.info(f"Found {len(file_names)} XML files to download")
        for file_name in file_names:
            logger.debug(f"Found XML file: {file_name}")

        return file_names

    def _download_xml_files(self, file_names: List[str], summary: RunSummary) -> None:
        """Download every listed file, continuing past individual failures."""
        remote_directory = self.sftp_config.remote_directory
        logger.info(f"Downloading {len(file_names)} XML files to local inbox: {self.inbox_path}")

        if not self.inbox_path.exists():
            self.inbox_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created inbox directory: {self.inbox_path.resolve()}")

        for file_name in file_names:
            logger.info(f"Downloading file: {file_name}")
            start = time.monotonic()

            try:
                file_size = self.sftp_client.get_file_size(remote_directory, file_name)
                local_path = self.sftp_client.download_file(remote_directory, file_name, str(self.inbox_path))

            except Exception as e:
                logger.error(f"Failed to download file: {file_name}: {e}")
                self.audit_logger.log_file_download(file_name, 0, False, str(e))
                self.error_handler.handle_error(
                    error=e,
                    category=ErrorCategory.SFTP_FILE_OPERATION,
                    severity=ErrorSeverity.MEDIUM,
                    component="MainController",
                    operation="download_file",
                    additional_data={"filename": file_name}
                )
                summary.downloads.append(DownloadResult(
                    filename=file_name, size=0, success=False, error_message=str(e)
                ))
                summary.download_failures += 1
                continue

            self.audit_logger.log_file_download(file_name, file_size, True)
            self.audit_logger.log_performance("FILE_DOWNLOAD", _elapsed_ms(start), file_name)
            summary.downloads.append(DownloadResult(
                filename=file_name, size=file_size, success=True, local_path=local_path
            ))
            summary.downloaded += 1
            logger.info(f"Successfully downloaded: {file_name} ({file_size} bytes)")

        logger.info(f"Download summary - Success: {summary.downloaded}, Failures: {summary.download_failures}")
        if summary.download_failures > 0:
            logger.warning("Some files failed to download. Check logs for details.")

    def _process_downloaded_files(self, summary: RunSummary) -> None:
        """Decrypt and check each file downloaded during this run.

        Files left in the inbox by earlier runs are ignored. Parsing and
        persistence are not wired in yet, so a file that passes the
        well-formedness check counts as processed.
        """
        for download in summary.downloads:
            if not download.success:
                continue

            file_name = download.filename
            xml_file = Path(download.local_path) if download.local_path else self.inbox_path / file_name

            if not xml_file.exists():
                logger.warning(f"Downloaded file not found: {xml_file.resolve()}")
                continue

            try:
                self._process_file(xml_file)
            except Exception as e:
                logger.error(f"Failed to process file: {file_name}: {e}")
                self.audit_logger.log_processing_event("FILE_PROCESSING", file_name, False, str(e))
                self.error_handler.handle_error(
                    error=e,
                    category=self._processing_error_category(e),
                    severity=ErrorSeverity.MEDIUM,
                    component="MainController",
                    operation="process_file",
                    additional_data={"filename": file_name}
                )
                summary.processing_failures += 1
                continue

            self.audit_logger.log_processing_event("FILE_PROCESSING", file_name, True)
            summary.processed += 1

        logger.info(f"Processing summary - Success: {summary.processed}, Failures: {summary.processing_failures}")

    def _process_file(self, xml_file: Path) -> None:
        file_name = xml_file.name

        if self.pgp_service.is_pgp_encrypted(xml_file):
            logger.info(f"File {file_name} appears to be PGP encrypted, decrypting")
            decrypted_file = _decrypted_path(xml_file)
            try:
                self.pgp_service.decrypt_file(xml_file, decrypted_file)
            except PGPError as e:
                self.audit_logger.log_pgp_operation("DECRYPT", file_name, False, str(e))
                raise
            self.audit_logger.log_pgp_operation("DECRYPT", file_name, True)
            xml_file = decrypted_file

        if not self.xml_parser.is_well_formed(xml_file):
            raise XmlParsingError(f"File {xml_file.name} is not well-formed XML")

        logger.info(f"File {xml_file.name} is well-formed XML (would parse)")
        logger.info(f"File {xml_file.name} would be persisted")

    @staticmethod
    def _processing_error_category(error: Exception) -> ErrorCategory:
        if isinstance(error, PGPError):
            return ErrorCategory.PGP_OPERATION
        if isinstance(error, XmlParsingError):
            return ErrorCategory.XML_PARSING
        if isinstance(error, DatabaseError):
            return ErrorCategory.DATABASE_OPERATION
        return ErrorCategory.FILE_PROCESSING

    def cleanup(self) -> None:
        """Release every resource. Errors are logged, never raised."""
        logger.info("Cleaning up application resources...")

        try:
            if self.sftp_client.is_connected():
                self.sftp_client.disconnect()
                logger.info("SFTP connection closed")
        except Exception as e:
            logger.warning(f"Error during SFTP cleanup: {e}")

        try:
            self.repository.disconnect()
        except Exception as e:
            logger.warning(f"Error during database cleanup: {e}")

        try:
            self.audit_logger.log_application_stop()
            self.audit_logger.close()
        except Exception as e:
            logger.warning(f"Error closing audit logger: {e}")

        logger.info("Application cleanup completed")
