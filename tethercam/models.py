"""
Core data models for tethercam.

This module defines the data structures shared by the registry, the camera
session and its consumers: session status, device descriptors, typed
parameter values and the notification payloads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class Status(Enum):
    """Enumeration of camera session states."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"
    UNLOADING = "unloading"
    UNAVAILABLE = "unavailable"

    @property
    def holds_camera(self) -> bool:
        """Check if a session in this state owns an open camera handle."""
        return self in _OPEN_STATES


_OPEN_STATES = frozenset({Status.LOADED, Status.STARTING, Status.ACTIVE, Status.STOPPING})


class CameraErrorKind(Enum):
    """Kinds of session-level errors reported through the error notification."""
    NO_ERROR = "no_error"
    CAMERA_ERROR = "camera_error"


class CaptureErrorReason(Enum):
    """Reasons attached to a failed still capture request."""
    NO_ERROR = "no_error"
    NOT_READY_ERROR = "not_ready_error"
    RESOURCE_ERROR = "resource_error"
    OUT_OF_SPACE_ERROR = "out_of_space_error"
    NOT_SUPPORTED_FEATURE_ERROR = "not_supported_feature_error"
    FORMAT_ERROR = "format_error"


class WidgetKind(Enum):
    """Node kinds of the camera configuration widget tree."""
    WINDOW = "window"
    SECTION = "section"
    TEXT = "text"
    RANGE = "range"
    TOGGLE = "toggle"
    RADIO = "radio"
    MENU = "menu"
    BUTTON = "button"
    DATE = "date"


class CameraEventKind(Enum):
    """Event types delivered by the camera event queue."""
    UNKNOWN = "unknown"
    TIMEOUT = "timeout"
    FILE_ADDED = "file_added"
    FOLDER_ADDED = "folder_added"
    CAPTURE_COMPLETE = "capture_complete"
    FILE_CHANGED = "file_changed"


class ValueKind(Enum):
    """Variants of a typed parameter value."""
    STRING = "string"
    BOOL = "bool"
    REAL = "real"
    INT = "int"


@dataclass(frozen=True)
class ParameterValue:
    """
    A typed camera parameter value.

    Exactly one of the ValueKind variants; the Python payload always matches
    the kind (str, bool, float or int).
    """
    kind: ValueKind
    value: Any

    @classmethod
    def string(cls, value: str) -> "ParameterValue":
        return cls(ValueKind.STRING, str(value))

    @classmethod
    def boolean(cls, value: bool) -> "ParameterValue":
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def real(cls, value: float) -> "ParameterValue":
        return cls(ValueKind.REAL, float(value))

    @classmethod
    def integer(cls, value: int) -> "ParameterValue":
        return cls(ValueKind.INT, int(value))

    @classmethod
    def of(cls, value: Any) -> "ParameterValue":
        """
        Wrap a plain Python value into a ParameterValue.

        Args:
            value: A str, bool, int, float or an existing ParameterValue

        Returns:
            ParameterValue: The tagged value

        Raises:
            TypeError: If the value has no parameter variant
        """
        if isinstance(value, ParameterValue):
            return value
        # bool is a subclass of int and must be checked first
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.real(value)
        if isinstance(value, str):
            return cls.string(value)
        raise TypeError(f"Unsupported parameter value type: {type(value).__name__}")

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class DeviceDescriptor:
    """
    An attached camera as reported by the registry.

    The identifier is the camera model name, the description is the port
    path the camera is attached to (for example ``usb:001,004``).
    """
    identifier: str
    description: str


@dataclass(frozen=True)
class PortInfoHandle:
    """
    A port record together with the catalogue it was read from.

    The port record is only valid while its catalogue is alive, so the
    handle keeps a reference to both.
    """
    port_info: Any
    port_info_list: Any


@dataclass
class ParameterInfo:
    """Diagnostic snapshot of a single configuration widget."""
    name: str
    kind: WidgetKind
    value: Optional[ParameterValue]
    choices: List[str] = field(default_factory=list)


@dataclass
class CapturedImage:
    """A downloaded still image and the request it answers."""
    request_id: int
    data: bytes
    filename: str
