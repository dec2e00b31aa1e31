"""
Access to the gphoto2 binding.

The binding is imported lazily so that the rest of the package (and code
that injects its own library object) does not require libgphoto2 at import
time. Constants of the binding are mapped to tethercam enums by name.
"""

import logging
from typing import Any, Dict

from .exceptions import LibraryUnavailableError
from .models import CameraEventKind, WidgetKind

logger = logging.getLogger(__name__)


def load_gphoto2() -> Any:
    """
    Import and return the gphoto2 binding module.

    Returns:
        module: The ``gphoto2`` module

    Raises:
        LibraryUnavailableError: If the binding is not installed
    """
    try:
        import gphoto2
    except ImportError as e:
        raise LibraryUnavailableError(
            "The gphoto2 Python binding is not installed", cause=e
        )
    logger.debug(f"Loaded gphoto2 binding {getattr(gphoto2, '__version__', 'unknown')}")
    return gphoto2


def _constant_map(gp: Any, prefix: str, enum_cls) -> Dict[int, Any]:
    mapping = {}
    for member in enum_cls:
        code = getattr(gp, f"{prefix}{member.name}", None)
        if code is not None:
            mapping[code] = member
    return mapping


def widget_kind(gp: Any, type_code: int) -> WidgetKind:
    """
    Translate a GP_WIDGET_* type code into a WidgetKind.

    Args:
        gp: The gphoto2 binding (or a compatible object)
        type_code: Value returned by ``widget.get_type()``

    Returns:
        WidgetKind: The matching kind

    Raises:
        ValueError: If the code is not a known widget type
    """
    try:
        return _constant_map(gp, "GP_WIDGET_", WidgetKind)[type_code]
    except KeyError:
        raise ValueError(f"Unknown widget type code: {type_code}")


def event_kind(gp: Any, type_code: int) -> CameraEventKind:
    """Translate a GP_EVENT_* type code, treating unknown codes as UNKNOWN."""
    return _constant_map(gp, "GP_EVENT_", CameraEventKind).get(type_code, CameraEventKind.UNKNOWN)
