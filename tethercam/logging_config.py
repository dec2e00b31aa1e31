"""
Centralized logging configuration for tethercam.

This module provides logging setup so that the registry, the camera sessions
and the command line share one format, one rotating log file and
per-module levels.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional


class TetherCamLogger:
    """
    Centralized logger configuration for tethercam.

    Provides consistent logging setup with file and console handlers,
    appropriate formatting, and configurable log levels.
    """

    _configured = False
    _log_file_path: Optional[Path] = None

    DEFAULT_LOG_DIR = Path.home() / ".tethercam"
    DEFAULT_LOG_FILE = "tethercam.log"

    @classmethod
    def configure(
        cls,
        log_level: str = "INFO",
        log_file: Optional[Path] = None,
        console_output: bool = True,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ) -> None:
        """
        Configure logging for tethercam.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional path to log file. Defaults to ~/.tethercam/tethercam.log
            console_output: Whether to output logs to console
            max_file_size: Maximum size of log file before rotation
            backup_count: Number of backup log files to keep
        """
        if cls._configured:
            return

        if log_file is None:
            log_file = cls.DEFAULT_LOG_DIR / cls.DEFAULT_LOG_FILE
        log_file = Path(log_file)

        cls._log_file_path = log_file
        level = getattr(logging, log_level.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)  # File gets all messages
            root_logger.addHandler(file_handler)
        except Exception as e:
            # If file logging fails, continue with console only
            print(f"Warning: Could not set up file logging: {e}", file=sys.stderr)

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            console_handler.setLevel(level)
            root_logger.addHandler(console_handler)

        cls._configure_tethercam_loggers(level)

        cls._configured = True

        logger = logging.getLogger(__name__)
        logger.info(f"Logging configured - Level: {log_level}, File: {log_file}")

    @classmethod
    def _configure_tethercam_loggers(cls, level: int) -> None:
        """Configure specific loggers for tethercam modules."""
        module_levels = {
            'tethercam.registry': level,
            'tethercam.session': level,
            'tethercam.worker': level,
            'tethercam.parameters': level,
            'tethercam.events': max(level, logging.INFO),  # emits once per frame
            'tethercam.library': level,
            'tethercam.cli': level,
        }

        for module_name, module_level in module_levels.items():
            logging.getLogger(module_name).setLevel(module_level)

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        """Get the current log file path."""
        return cls._log_file_path

    @classmethod
    def set_level(cls, level: str) -> None:
        """
        Change the logging level for all tethercam loggers.

        Args:
            level: New logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        log_level = getattr(logging, level.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers:
            if isinstance(handler, logging.StreamHandler) and handler.stream == sys.stdout:
                handler.setLevel(log_level)

        # Module loggers were pinned by configure()
        for name in list(logging.root.manager.loggerDict):
            if name.startswith('tethercam.'):
                logging.getLogger(name).setLevel(log_level)

        logger = logging.getLogger(__name__)
        logger.info(f"Logging level changed to {level.upper()}")

    @classmethod
    def reset(cls) -> None:
        """Forget the current configuration so configure() may run again."""
        cls._configured = False
        cls._log_file_path = None


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True
) -> None:
    """
    Convenience function to set up tethercam logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console_output: Whether to output logs to console
    """
    TetherCamLogger.configure(
        log_level=log_level,
        log_file=log_file,
        console_output=console_output
    )
