"""
Exception classes for tethercam operations.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class TetherCamError(Exception):
    """Base exception class for all tethercam errors."""

    # Level of the record logged when the error is created
    log_level = logging.ERROR

    def __init__(self, message: str, cause: Optional[Exception] = None, context: Optional[dict] = None):
        """
        Initialize tethercam error.

        Args:
            message: Error message
            cause: Original exception that caused this error
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

        # Log the error with context
        logger.log(self.log_level, f"{self.__class__.__name__}: {message}", extra={
            'cause': str(cause) if cause else None,
            'context': self.context
        })


class LibraryUnavailableError(TetherCamError):
    """Raised when the gphoto2 binding cannot be imported."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, cause, {'library': 'gphoto2'})


class RegistryError(TetherCamError):
    """Raised when the device registry cannot initialize or enumerate cameras."""

    def __init__(self, message: str, stage: Optional[str] = None, cause: Optional[Exception] = None):
        context = {'stage': stage} if stage else {}
        super().__init__(message, cause, context)


class DeviceNotFoundError(TetherCamError):
    """Raised when a requested device cannot be resolved through the registry."""

    def __init__(self, message: str, device_id: Optional[str] = None, cause: Optional[Exception] = None):
        context = {'device_id': device_id} if device_id else {}
        super().__init__(message, cause, context)


class ParameterError(TetherCamError):
    """Raised when a camera parameter cannot be read or written."""

    # Recoverable; the session reports it when it turns the error into None or False
    log_level = logging.DEBUG

    def __init__(self, message: str, name: Optional[str] = None, cause: Optional[Exception] = None):
        context = {'parameter': name} if name else {}
        super().__init__(message, cause, context)


class UnsupportedWidgetError(ParameterError):
    """Raised when a widget kind or value kind has no typed mapping."""
    pass


class WorkerStoppedError(TetherCamError):
    """Raised when a command is submitted to a worker that has been shut down."""

    def __init__(self, message: str, worker: Optional[str] = None):
        context = {'worker': worker} if worker else {}
        super().__init__(message, context=context)
