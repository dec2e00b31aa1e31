"""
Notification system for tethercam.

This module provides a thread-safe event manager through which a camera
worker publishes its notifications (status changes, preview frames, captured
images and errors) to any number of subscribers.
"""

import threading
from typing import Any, Callable, Dict, List
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class Notification(Enum):
    """Enumeration of notifications emitted by a camera session."""
    STATUS_CHANGED = "status_changed"
    PREVIEW_CAPTURED = "preview_captured"
    IMAGE_CAPTURED = "image_captured"
    IMAGE_CAPTURE_ERROR = "image_capture_error"
    ERROR = "error"


class EventManager:
    """
    Thread-safe event manager for camera session notifications.

    Provides subscription-based event handling with support for multiple
    callbacks per notification. Callbacks run on the thread that emits, which
    for a camera worker is always the worker's own thread.
    """

    def __init__(self):
        """Initialize the event manager with empty subscriber lists."""
        self._subscribers: Dict[str, List[Callable]] = {
            notification.value: [] for notification in Notification
        }
        self._lock = threading.RLock()

    @staticmethod
    def _validate(event_type: Any) -> str:
        if isinstance(event_type, Notification):
            return event_type.value
        valid_types = [n.value for n in Notification]
        if event_type not in valid_types:
            raise ValueError(f"Invalid event type '{event_type}'. Must be one of: {valid_types}")
        return event_type

    def subscribe(self, event_type: Any, callback: Callable) -> None:
        """
        Subscribe a callback function to a notification.

        Args:
            event_type: A Notification or its string value
            callback: The function to call when the notification is emitted

        Raises:
            ValueError: If event_type is not a valid Notification
            TypeError: If callback is not callable
        """
        if not callable(callback):
            raise TypeError("Callback must be callable")

        event_type = self._validate(event_type)

        with self._lock:
            if callback not in self._subscribers[event_type]:
                self._subscribers[event_type].append(callback)
                logger.debug(f"Subscribed callback to {event_type}")

    def unsubscribe(self, event_type: Any, callback: Callable) -> None:
        """
        Unsubscribe a callback function from a notification.

        Args:
            event_type: A Notification or its string value
            callback: The callback function to remove

        Raises:
            ValueError: If event_type is not a valid Notification
        """
        event_type = self._validate(event_type)

        with self._lock:
            if callback in self._subscribers[event_type]:
                self._subscribers[event_type].remove(callback)
                logger.debug(f"Unsubscribed callback from {event_type}")

    def emit(self, event_type: Any, *args: Any) -> None:
        """
        Emit a notification to all subscribed callbacks.

        Every callback receives the positional arguments of the notification.
        If a callback raises an exception, it is logged but does not prevent
        other callbacks from executing.

        Args:
            event_type: A Notification or its string value
            *args: Notification payload

        Raises:
            ValueError: If event_type is not a valid Notification
        """
        event_type = self._validate(event_type)

        # Copy so callbacks may (un)subscribe while being called
        with self._lock:
            callbacks = self._subscribers[event_type].copy()

        logger.debug(f"Emitting {event_type} event to {len(callbacks)} subscribers")

        for callback in callbacks:
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Error in event callback for {event_type}: {e}")

    def get_subscriber_count(self, event_type: Any) -> int:
        """
        Get the number of subscribers for a given notification.

        Raises:
            ValueError: If event_type is not a valid Notification
        """
        event_type = self._validate(event_type)

        with self._lock:
            return len(self._subscribers[event_type])

    def clear_subscribers(self, event_type: Any = None) -> None:
        """
        Clear all subscribers for one notification or for all of them.

        Args:
            event_type: The notification to clear. If None, clears everything.

        Raises:
            ValueError: If event_type is provided but not a valid Notification
        """
        with self._lock:
            if event_type is not None:
                event_type = self._validate(event_type)
                self._subscribers[event_type].clear()
                logger.debug(f"Cleared all subscribers for {event_type}")
            else:
                for event_list in self._subscribers.values():
                    event_list.clear()
                logger.debug("Cleared all subscribers for all event types")
