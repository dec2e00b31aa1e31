"""
Tests for the threaded CameraWorker.

Tests cover command ordering, thread confinement of library calls and
notifications, exception propagation, shutdown and construction from a
registry.
"""

import threading

import pytest

from fake_gphoto import FakeGPhoto
from conftest import CAMERA_MODEL, CAMERA_PORT, NotificationRecorder
from tethercam.events import Notification
from tethercam.exceptions import DeviceNotFoundError, WorkerStoppedError
from tethercam.models import CameraErrorKind, ParameterValue, Status
from tethercam.registry import DeviceRegistry
from tethercam.worker import CameraWorker

TIMEOUT = 5.0


@pytest.fixture
def registry(dslr_gp):
    return DeviceRegistry(gp=dslr_gp)


@pytest.fixture
def worker(registry):
    worker = CameraWorker.for_device(registry)
    yield worker
    worker.shutdown()


class TestCameraWorker:
    """Test cases for CameraWorker."""

    def test_for_device_uses_default_camera(self, worker):
        """Test that the worker is named after the default camera."""
        assert worker.name == f"tethercam-{CAMERA_MODEL}"
        assert worker.running
        assert worker.status is Status.UNLOADED

    def test_commands_run_in_order(self, worker):
        """Test that queued commands complete in submission order."""
        statuses = []
        worker.on(Notification.STATUS_CHANGED, statuses.append)

        futures = [worker.open(), worker.capture_preview(), worker.stop_viewfinder(), worker.close()]
        for future in futures:
            future.result(timeout=TIMEOUT)

        assert statuses == [
            Status.LOADING, Status.LOADED,
            Status.STARTING, Status.ACTIVE,
            Status.STOPPING, Status.LOADED,
            Status.UNLOADING, Status.UNLOADED,
        ]

    def test_notifications_come_from_worker_thread(self, worker):
        """Test that callbacks run on the worker thread, not the caller's."""
        threads = set()
        worker.on(Notification.STATUS_CHANGED, lambda status: threads.add(threading.current_thread().name))

        worker.open().result(timeout=TIMEOUT)

        assert threads == {worker.name}

    def test_futures_carry_results(self, worker):
        """Test that command results are delivered through futures."""
        worker.open().result(timeout=TIMEOUT)

        assert worker.set_parameter("iso", 400).result(timeout=TIMEOUT) is True
        assert worker.get_parameter("iso").result(timeout=TIMEOUT) == ParameterValue.string("400")
        assert worker.describe_parameter("iso").result(timeout=TIMEOUT).choices == ["Auto", "100", "200", "400"]
        assert worker.capture_photo(1, "a.jpg").result(timeout=TIMEOUT) == b"\xff\xd8captured-jpeg\xff\xd9"

    def test_command_exception_is_propagated(self, worker, monkeypatch):
        """Test that an unexpected exception reaches the future and the error notification."""
        errors = []
        worker.on(Notification.ERROR, lambda kind, message: errors.append((kind, message)))
        worker.open().result(timeout=TIMEOUT)

        def explode(name):
            raise RuntimeError("boom")

        monkeypatch.setattr(worker._session, "describe_parameter", explode)

        future = worker.describe_parameter("iso")

        with pytest.raises(RuntimeError, match="boom"):
            future.result(timeout=TIMEOUT)
        assert errors == [(CameraErrorKind.CAMERA_ERROR, "boom")]

        # The worker keeps running after a failed command
        assert worker.get_parameter("viewfinder").result(timeout=TIMEOUT) == ParameterValue.boolean(True)

    def test_shutdown_closes_camera(self, registry, dslr_gp):
        """Test that shutdown closes an open camera and stops the thread."""
        worker = CameraWorker.for_device(registry)
        worker.open().result(timeout=TIMEOUT)

        worker.shutdown()

        assert not worker.running
        assert worker.status is Status.UNLOADED
        assert len(dslr_gp.calls_named("exit")) == 1
        assert not worker._thread.is_alive()

    def test_commands_after_shutdown_are_rejected(self, worker):
        """Test that a stopped worker refuses new commands."""
        worker.shutdown()

        with pytest.raises(WorkerStoppedError):
            worker.open()

    def test_shutdown_twice(self, worker):
        worker.shutdown()
        worker.shutdown()
        assert not worker.running

    def test_context_manager(self, registry):
        """Test that leaving the context shuts the worker down."""
        with CameraWorker.for_device(registry) as worker:
            worker.open().result(timeout=TIMEOUT)

        assert not worker.running
        assert worker.status is Status.UNLOADED

    def test_shared_event_manager(self, registry, events):
        """Test that an injected event manager receives the worker's notifications."""
        recorder = NotificationRecorder(events)

        with CameraWorker.for_device(registry, events=events) as worker:
            worker.capture_photo(9, "early.jpg").result(timeout=TIMEOUT)

        assert recorder.of(Notification.IMAGE_CAPTURE_ERROR)[0][0] == 9


class TestForDevice:
    """Test cases for building workers from a registry."""

    def test_no_camera_detected(self):
        with pytest.raises(DeviceNotFoundError, match="No camera detected"):
            CameraWorker.for_device(DeviceRegistry(gp=FakeGPhoto()))

    def test_camera_not_attached(self, registry):
        with pytest.raises(DeviceNotFoundError, match="is not attached"):
            CameraWorker.for_device(registry, "Nikon D750")

    def test_unknown_abilities(self):
        gp = FakeGPhoto(detected=[(CAMERA_MODEL, CAMERA_PORT)], models=[])
        with pytest.raises(DeviceNotFoundError, match="Unable to find abilities"):
            CameraWorker.for_device(DeviceRegistry(gp=gp))

    def test_unknown_port(self):
        gp = FakeGPhoto(detected=[(CAMERA_MODEL, CAMERA_PORT)], ports=[])
        with pytest.raises(DeviceNotFoundError, match="Unable to find port"):
            CameraWorker.for_device(DeviceRegistry(gp=gp))

    def test_explicit_device_and_name(self, registry):
        worker = CameraWorker.for_device(registry, CAMERA_MODEL, name="studio")
        try:
            assert worker.name == "studio"
        finally:
            worker.shutdown()
