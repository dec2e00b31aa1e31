"""
tethercam - Tethered camera control on top of libgphoto2.

Enumerates attached cameras, streams viewfinder previews, captures stills and
exposes camera parameters through a single-threaded camera worker.
"""

__version__ = "0.1.0"

from .models import (
    CameraErrorKind, CameraEventKind, CapturedImage, CaptureErrorReason,
    DeviceDescriptor, ParameterInfo, ParameterValue, PortInfoHandle, Status,
    ValueKind, WidgetKind,
)
from .events import EventManager, Notification
from .exceptions import (
    TetherCamError, LibraryUnavailableError, RegistryError, DeviceNotFoundError,
    ParameterError, UnsupportedWidgetError, WorkerStoppedError,
)
from .registry import DeviceRegistry
from .session import CameraSession
from .worker import CameraWorker

__all__ = [
    "CameraErrorKind",
    "CameraEventKind",
    "CapturedImage",
    "CaptureErrorReason",
    "DeviceDescriptor",
    "ParameterInfo",
    "ParameterValue",
    "PortInfoHandle",
    "Status",
    "ValueKind",
    "WidgetKind",
    "EventManager",
    "Notification",
    "TetherCamError",
    "LibraryUnavailableError",
    "RegistryError",
    "DeviceNotFoundError",
    "ParameterError",
    "UnsupportedWidgetError",
    "WorkerStoppedError",
    "DeviceRegistry",
    "CameraSession",
    "CameraWorker",
]
