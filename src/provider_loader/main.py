"""Main entry point for the provider loader."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .audit.logger import AuditLogger
from .config.settings import ConfigManager, ConfigurationError
from .controller.main_controller import MainController, ProcessingError
from .utils.error_handler import ErrorHandler, ErrorCategory, ErrorSeverity
from .utils.logging_config import LoggingManager


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="provider-loader",
        description="Download provider extract files over SFTP and process them."
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to the properties file (default: $PROVIDER_LOADER_CONFIG or ./application.properties)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _log_error_report(error_handler: ErrorHandler) -> None:
    if error_handler.get_error_statistics()["total_errors"] == 0:
        return
    logger.info("Error Summary:")
    for line in error_handler.generate_error_report().strip().split('\n'):
        if line.strip():
            logger.info(line)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the provider loader once.

    Args:
        argv: Command line arguments, ``sys.argv[1:]`` when omitted

    Returns:
        int: 0 on success, 1 when initialisation or the workflow fails
    """
    args = build_parser().parse_args(argv)

    # Console-only logging until the configuration names a level and directory
    logging_manager = LoggingManager()
    logging_manager.setup_logging()

    error_handler = ErrorHandler()
    audit_logger = None
    controller = None
    exit_code = 0

    try:
        logger.info("Initializing ProviderLoader application...")
        config_manager = ConfigManager(args.config)

        logging_config = config_manager.get_logging_config()
        logging_manager.shutdown()
        logging_manager = LoggingManager(logging_config)
        logging_manager.setup_logging()

        logger.info("=" * 60)
        logger.info(f"ProviderLoader {__version__} starting up")
        logger.info("=" * 60)
        logger.info(f"Python version: {sys.version.split()[0]}")
        logger.info(f"Working directory: {os.getcwd()}")
        logger.info(f"Configuration loaded from: {config_manager.properties_path}")

        audit_logger = AuditLogger(
            logging_manager.get_logger("provider_loader.audit"),
            logging_config.audit_level
        )
        controller = MainController(config_manager, audit_logger, error_handler)
        logger.info("Application initialized successfully")

        summary = controller.run()
        logger.info(f"Run completed: {summary.files_found} found, "
                    f"{summary.downloaded} downloaded, {summary.download_failures} download failures, "
                    f"{summary.processed} processed, {summary.processing_failures} processing failures")

    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        error_handler.handle_error(
            error=e,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            component="main",
            operation="startup"
        )
        exit_code = 1
    except ProcessingError as e:
        logger.error(f"Processing error: {e}")
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        exit_code = 1
    except Exception as e:
        logger.critical(f"Unexpected error during execution: {e}", exc_info=True)
        error_handler.handle_error(
            error=e,
            category=ErrorCategory.SYSTEM_RESOURCE,
            severity=ErrorSeverity.CRITICAL,
            component="main",
            operation="execution"
        )
        exit_code = 1
    finally:
        if controller is not None:
            controller.cleanup()
        elif audit_logger is not None:
            audit_logger.close()

        try:
            _log_error_report(error_handler)
        except Exception as report_error:
            logger.warning(f"Could not generate error report: {report_error}")

        logger.info("Application shutdown complete")
        logging_manager.shutdown()

    return exit_code


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
