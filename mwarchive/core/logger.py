"""
Logging and Error Handling System

This module provides centralized logging configuration and per-page error
tracking for the archiver.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Dict, Any
import traceback
from pathlib import Path


APP_NAME = "mwarchive"


class ArchiverLogger:
    """
    Centralized logging system for the archiver.

    Module loggers are named after their modules (``mwarchive.core...``), so
    their records reach the handlers installed on the ``mwarchive`` logger.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = APP_NAME):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            app_name: Name of the root application logger
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Set up the application logger with file and console handlers.

        Args:
            level: Console logging level (default: INFO)

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(logging.DEBUG)

        # Re-initialization replaces handlers instead of stacking them
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file = self.log_dir / f"{self.app_name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)

        error_file = self.log_dir / f"{self.app_name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Name of the component

        Returns:
            Logger instance under the application logger
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log system information for debugging."""
        logger = self.get_logger('system')

        logger.info("=== mwarchive started ===")
        logger.debug(f"Python version: {sys.version}")
        logger.debug(f"Platform: {sys.platform}")
        logger.debug(f"Working directory: {os.getcwd()}")
        logger.info(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Records per-page failures so a run can continue past them and report
    them at the end.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: list = []

    def log_error(self,
                  error: Exception,
                  context: str = None,
                  page_id: int = None,
                  title: str = None) -> str:
        """
        Log an error with the page it happened on.

        Args:
            error: The exception that occurred
            context: Where the error occurred (e.g. "archive namespace=0")
            page_id: ID of the page being processed
            title: Title of the page being processed

        Returns:
            Error ID for tracking
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"

        error_data = {
            'id': error_id,
            'timestamp': datetime.now(),
            'type': type(error).__name__,
            'message': str(error),
            'context': context,
            'page_id': page_id,
            'title': title,
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

        self.errors.append(error_data)

        log_message = f"[{error_id}] Failed to archive page: page_id={page_id} title={title!r} " \
                      f"error={error_data['type']}: {error_data['message']}"
        if context:
            log_message += f" (Context: {context})"

        self.logger.error(log_message)
        self.logger.debug(f"[{error_id}] Full traceback:\n{error_data['traceback']}")

        return error_id

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all recorded errors.

        Returns:
            Dictionary with error statistics and the most recent errors
        """
        return {
            'total_errors': len(self.errors),
            'error_types': self._count_error_types(),
            'recent_errors': self.errors[-5:] if self.errors else [],
        }

    def _count_error_types(self) -> Dict[str, int]:
        """Count errors by type."""
        type_counts = {}
        for error in self.errors:
            error_type = error['type']
            type_counts[error_type] = type_counts.get(error_type, 0) + 1
        return type_counts

    def save_error_report(self, output_path: str):
        """
        Save a detailed error report to a file.

        Args:
            output_path: Path where the report should be saved
        """
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write("MWARCHIVE ERROR REPORT\n")
                f.write("=" * 50 + "\n\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write(f"Total Errors: {len(self.errors)}\n\n")

                for error in self.errors:
                    f.write(f"[{error['id']}] {error['timestamp']}\n")
                    f.write(f"Type: {error['type']}\n")
                    f.write(f"Message: {error['message']}\n")
                    if error['context']:
                        f.write(f"Context: {error['context']}\n")
                    if error['page_id'] is not None:
                        f.write(f"Page ID: {error['page_id']}\n")
                    if error['title'] is not None:
                        f.write(f"Title: {error['title']}\n")
                    f.write(f"Traceback:\n{error['traceback']}\n")
                    f.write("-" * 50 + "\n")

            self.logger.info(f"Error report saved to: {output_path}")

        except OSError as e:
            self.logger.error(f"Failed to save error report: {e}")


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Name of the component (optional)

    Returns:
        Logger instance; the application logger when no name is given
    """
    if name:
        return logging.getLogger(f"{APP_NAME}.{name}")
    return logging.getLogger(APP_NAME)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO) -> ArchiverLogger:
    """
    Initialize the logging system.

    Args:
        log_dir: Directory for log files
        level: Console logging level
    """
    archiver_logger = ArchiverLogger(log_dir)
    archiver_logger.setup_logger(level)
    archiver_logger.log_system_info()
    return archiver_logger


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """
    Create an error tracker instance.

    Args:
        logger_name: Name of the logger to use

    Returns:
        ErrorTracker instance
    """
    return ErrorTracker(get_logger(logger_name))
