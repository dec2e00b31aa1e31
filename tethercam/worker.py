"""
Threaded camera worker.

This module contains the CameraWorker class that owns a CameraSession and a
dedicated thread. Commands are delivered to the thread through a queue and
executed one at a time in arrival order, so the underlying library is only
ever called from that thread and notifications come out in command order.
"""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

from .events import EventManager, Notification
from .exceptions import DeviceNotFoundError, WorkerStoppedError
from .models import CameraErrorKind, PortInfoHandle, Status
from .registry import DeviceRegistry
from .session import CameraSession

logger = logging.getLogger(__name__)

_STOP = object()


class CameraWorker:
    """
    Runs a camera session on its own thread.

    Every command returns a concurrent.futures.Future holding the session
    method's result. Notifications are emitted from the worker thread through
    ``events``.
    """

    def __init__(
        self,
        abilities: Any,
        port_info: PortInfoHandle,
        events: Optional[EventManager] = None,
        gp: Optional[Any] = None,
        name: Optional[str] = None,
        preview_fail_limit: Optional[int] = None
    ):
        """
        Create the session and start the worker thread.

        Args:
            abilities: Camera abilities record from the registry
            port_info: Port record bound to its catalogue, from the registry
            events: Event manager receiving notifications. Created if omitted.
            gp: Optional gphoto2 binding to use. Defaults to the installed one.
            name: Thread name, used in log records
            preview_fail_limit: Consecutive preview failures before auto-close
        """
        self.events = events if events is not None else EventManager()
        self.name = name or "tethercam-worker"
        self._session = CameraSession(
            abilities, port_info, events=self.events, gp=gp,
            preview_fail_limit=preview_fail_limit
        )

        self._commands: "queue.Queue[Any]" = queue.Queue()
        self._running = True
        self._submit_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

        logger.info(f"Camera worker {self.name} started")

    @classmethod
    def for_device(
        cls,
        registry: DeviceRegistry,
        device_id: Optional[str] = None,
        **kwargs: Any
    ) -> "CameraWorker":
        """
        Build a worker for a camera known to the registry.

        Args:
            registry: The registry the camera was enumerated by
            device_id: Camera identifier. Defaults to the registry's default device.
            **kwargs: Passed to the CameraWorker constructor

        Returns:
            CameraWorker: A started worker with a closed session

        Raises:
            DeviceNotFoundError: If the camera, its abilities or its port cannot be resolved
        """
        device_id = device_id or registry.default_device()
        if not device_id:
            raise DeviceNotFoundError("No camera detected")

        description = registry.description_for(device_id)
        if not description:
            raise DeviceNotFoundError(f"Camera {device_id} is not attached", device_id=device_id)

        abilities = registry.abilities_for(device_id)
        if abilities is None:
            raise DeviceNotFoundError(f"Unable to find abilities for {device_id}", device_id=device_id)

        port_info = registry.port_info_for(description)
        if port_info is None:
            raise DeviceNotFoundError(f"Unable to find port {description} for {device_id}", device_id=device_id)

        kwargs.setdefault("name", f"tethercam-{device_id}")
        kwargs.setdefault("gp", registry.library)
        return cls(abilities, port_info, **kwargs)

    @property
    def status(self) -> Status:
        """Most recent session status."""
        return self._session.status

    @property
    def running(self) -> bool:
        """Check if the worker still accepts commands."""
        return self._running

    def on(self, event_type: Any, callback: Callable) -> None:
        """Subscribe to a worker notification."""
        self.events.subscribe(event_type, callback)

    # -- commands ------------------------------------------------------------

    def open(self) -> Future:
        return self._submit(self._session.open)

    def close(self) -> Future:
        return self._submit(self._session.close)

    def capture_preview(self) -> Future:
        return self._submit(self._session.capture_preview)

    def capture_photo(self, request_id: int, filename: str) -> Future:
        return self._submit(self._session.capture_photo, request_id, filename)

    def stop_viewfinder(self) -> Future:
        return self._submit(self._session.stop_viewfinder)

    def get_parameter(self, name: str) -> Future:
        return self._submit(self._session.get_parameter, name)

    def set_parameter(self, name: str, value: Any) -> Future:
        return self._submit(self._session.set_parameter, name, value)

    def describe_parameter(self, name: str) -> Future:
        return self._submit(self._session.describe_parameter, name)

    def _submit(self, method: Callable, *args: Any) -> Future:
        future: Future = Future()
        with self._submit_lock:
            if not self._running:
                raise WorkerStoppedError(f"Camera worker {self.name} is stopped", worker=self.name)
            self._commands.put((future, method, args))
        return future

    # -- thread --------------------------------------------------------------

    def _run(self) -> None:
        """Process commands until the stop marker arrives."""
        logger.debug(f"Camera worker {self.name} loop started")

        while True:
            item = self._commands.get()
            if item is _STOP:
                break

            future, method, args = item
            if not future.set_running_or_notify_cancel():
                continue

            try:
                result = method(*args)
            except Exception as e:
                logger.error(f"Error in camera command {method.__name__}: {e}")
                self.events.emit(Notification.ERROR, CameraErrorKind.CAMERA_ERROR, str(e))
                future.set_exception(e)
            else:
                future.set_result(result)

        logger.debug(f"Camera worker {self.name} loop stopped")

    def shutdown(self, timeout: float = 5.0) -> None:
        """
        Close the camera and stop the worker thread.

        Commands already queued run before the camera is closed. Further
        commands raise WorkerStoppedError.
        """
        with self._submit_lock:
            if not self._running:
                return
            self._commands.put((Future(), self._session.close, ()))
            self._commands.put(_STOP)
            self._running = False

        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Camera worker {self.name} did not stop gracefully")

        logger.info(f"Camera worker {self.name} stopped")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close the camera and stop the thread."""
        self.shutdown()
