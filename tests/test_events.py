"""
Unit tests for the EventManager class.

Tests cover notification subscription, unsubscription, emission with
positional payloads, thread safety and error handling scenarios.
"""

import pytest
import threading
import time
from unittest.mock import Mock

from tethercam.events import EventManager, Notification
from tethercam.models import CameraErrorKind, Status


class TestEventManager:
    """Test cases for the EventManager class."""

    def setup_method(self):
        """Set up a fresh EventManager for each test."""
        self.event_manager = EventManager()

    def test_initialization(self):
        """Test that EventManager initializes with empty subscriber lists."""
        for notification in Notification:
            assert self.event_manager.get_subscriber_count(notification) == 0

    def test_subscribe_by_enum_and_value(self):
        """Test that a Notification and its string value address the same list."""
        callback = Mock()

        self.event_manager.subscribe(Notification.PREVIEW_CAPTURED, callback)

        assert self.event_manager.get_subscriber_count("preview_captured") == 1

    def test_subscribe_invalid_event_type(self):
        """Test that subscribing to invalid event type raises ValueError."""
        with pytest.raises(ValueError, match="Invalid event type 'invalid_event'"):
            self.event_manager.subscribe("invalid_event", Mock())

    def test_subscribe_non_callable(self):
        """Test that subscribing non-callable raises TypeError."""
        with pytest.raises(TypeError, match="Callback must be callable"):
            self.event_manager.subscribe(Notification.ERROR, "not_callable")

    def test_subscribe_duplicate_callback(self):
        """Test that subscribing the same callback twice doesn't create duplicates."""
        callback = Mock()

        self.event_manager.subscribe(Notification.ERROR, callback)
        self.event_manager.subscribe(Notification.ERROR, callback)

        assert self.event_manager.get_subscriber_count(Notification.ERROR) == 1

    def test_unsubscribe_existing_callback(self):
        """Test unsubscribing an existing callback."""
        callback = Mock()

        self.event_manager.subscribe(Notification.STATUS_CHANGED, callback)
        self.event_manager.unsubscribe(Notification.STATUS_CHANGED, callback)

        assert self.event_manager.get_subscriber_count(Notification.STATUS_CHANGED) == 0

    def test_unsubscribe_non_existing_callback(self):
        """Test unsubscribing a callback that wasn't subscribed."""
        # Should not raise an error
        self.event_manager.unsubscribe(Notification.STATUS_CHANGED, Mock())
        assert self.event_manager.get_subscriber_count(Notification.STATUS_CHANGED) == 0

    def test_emit_status_payload(self):
        """Test that a status notification carries the new status."""
        callback = Mock()
        self.event_manager.subscribe(Notification.STATUS_CHANGED, callback)

        self.event_manager.emit(Notification.STATUS_CHANGED, Status.LOADED)

        callback.assert_called_once_with(Status.LOADED)

    def test_emit_multiple_arguments(self):
        """Test that capture notifications pass every payload field positionally."""
        callback = Mock()
        self.event_manager.subscribe(Notification.IMAGE_CAPTURED, callback)

        self.event_manager.emit(Notification.IMAGE_CAPTURED, 7, b"jpeg", "shot.jpg")

        callback.assert_called_once_with(7, b"jpeg", "shot.jpg")

    def test_emit_invalid_event_type(self):
        """Test that emitting invalid event type raises ValueError."""
        with pytest.raises(ValueError, match="Invalid event type 'invalid_event'"):
            self.event_manager.emit("invalid_event")

    def test_emit_with_callback_exception(self):
        """Test that callback exceptions don't prevent other callbacks from executing."""
        callback1 = Mock(side_effect=Exception("Test exception"))
        callback2 = Mock()

        self.event_manager.subscribe(Notification.ERROR, callback1)
        self.event_manager.subscribe(Notification.ERROR, callback2)

        # Should not raise exception
        self.event_manager.emit(Notification.ERROR, CameraErrorKind.CAMERA_ERROR, "boom")

        callback1.assert_called_once()
        callback2.assert_called_once_with(CameraErrorKind.CAMERA_ERROR, "boom")

    def test_callback_may_unsubscribe_itself(self):
        """Test that a callback removing itself during emission is safe."""
        calls = []

        def once(*args):
            calls.append(args)
            self.event_manager.unsubscribe(Notification.PREVIEW_CAPTURED, once)

        self.event_manager.subscribe(Notification.PREVIEW_CAPTURED, once)
        self.event_manager.emit(Notification.PREVIEW_CAPTURED, "frame-1")
        self.event_manager.emit(Notification.PREVIEW_CAPTURED, "frame-2")

        assert calls == [("frame-1",)]

    def test_clear_subscribers_specific_event(self):
        """Test clearing subscribers for a specific notification."""
        self.event_manager.subscribe(Notification.ERROR, Mock())
        self.event_manager.subscribe(Notification.IMAGE_CAPTURED, Mock())

        self.event_manager.clear_subscribers(Notification.ERROR)

        assert self.event_manager.get_subscriber_count(Notification.ERROR) == 0
        assert self.event_manager.get_subscriber_count(Notification.IMAGE_CAPTURED) == 1

    def test_clear_subscribers_all_events(self):
        """Test clearing subscribers for all notifications."""
        callback = Mock()
        for notification in Notification:
            self.event_manager.subscribe(notification, callback)

        self.event_manager.clear_subscribers()

        for notification in Notification:
            assert self.event_manager.get_subscriber_count(notification) == 0

    def test_clear_subscribers_invalid_event_type(self):
        """Test that clearing subscribers for invalid event type raises ValueError."""
        with pytest.raises(ValueError, match="Invalid event type 'invalid_event'"):
            self.event_manager.clear_subscribers("invalid_event")


class TestEventManagerThreadSafety:
    """Test cases for thread safety of EventManager."""

    def setup_method(self):
        """Set up a fresh EventManager for each test."""
        self.event_manager = EventManager()
        self.results = []
        self.lock = threading.Lock()

    def callback_with_delay(self, data=None):
        """Test callback that adds to results with a small delay."""
        time.sleep(0.001)
        with self.lock:
            self.results.append(data or "called")

    def test_concurrent_subscribe_unsubscribe(self):
        """Test concurrent subscription and unsubscription operations."""
        callbacks = [Mock() for _ in range(10)]

        def subscribe_callbacks():
            for callback in callbacks:
                self.event_manager.subscribe(Notification.STATUS_CHANGED, callback)

        def unsubscribe_callbacks():
            for callback in callbacks:
                self.event_manager.unsubscribe(Notification.STATUS_CHANGED, callback)

        threads = [
            threading.Thread(target=subscribe_callbacks),
            threading.Thread(target=unsubscribe_callbacks)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        count = self.event_manager.get_subscriber_count(Notification.STATUS_CHANGED)
        assert 0 <= count <= 10

    def test_concurrent_emit_operations(self):
        """Test concurrent notification emission."""
        num_threads = 5
        emissions_per_thread = 10

        self.event_manager.subscribe(Notification.PREVIEW_CAPTURED, self.callback_with_delay)

        def emit_events():
            for i in range(emissions_per_thread):
                self.event_manager.emit(Notification.PREVIEW_CAPTURED, f"frame_{i}")

        threads = [threading.Thread(target=emit_events) for _ in range(num_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(self.results) == num_threads * emissions_per_thread


class TestNotification:
    """Test cases for the Notification enum."""

    def test_notification_values(self):
        """Test that every session notification is defined."""
        expected = {
            "status_changed", "preview_captured", "image_captured",
            "image_capture_error", "error",
        }
        assert {notification.value for notification in Notification} == expected
