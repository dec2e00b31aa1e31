"""
Camera session state machine.

This module contains the CameraSession class that owns a single gphoto2
camera handle and drives it through open, preview, capture, parameter and
close operations. A session is not thread-safe: all of its methods must be
called from one thread, which CameraWorker guarantees.
"""

import io
import logging
from typing import Any, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .events import EventManager, Notification
from .exceptions import ParameterError
from .library import event_kind, load_gphoto2
from .models import (
    CameraErrorKind, CameraEventKind, CaptureErrorReason, ParameterInfo,
    ParameterValue, PortInfoHandle, Status,
)
from .parameters import ParameterCodec

logger = logging.getLogger(__name__)


class CameraSession:
    """
    Single-camera session driving libgphoto2.

    Commands translate into library calls and results are published as
    notifications through an EventManager. Library failures never escape a
    command; they become notifications, log records or return values.

    The camera handle is held exactly while the status is LOADED, STARTING,
    ACTIVE or STOPPING.
    """

    PREVIEW_FAIL_LIMIT = 10
    CAPTURE_EVENT_TIMEOUT_MS = 100
    SETTLE_EVENT_TIMEOUT_MS = 10

    def __init__(
        self,
        abilities: Any,
        port_info: PortInfoHandle,
        events: Optional[EventManager] = None,
        gp: Optional[Any] = None,
        preview_fail_limit: Optional[int] = None
    ):
        """
        Initialize a closed session.

        Args:
            abilities: Camera abilities record from the registry
            port_info: Port record bound to its catalogue, from the registry
            events: Event manager receiving notifications. Created if omitted.
            gp: Optional gphoto2 binding to use. Defaults to the installed one.
            preview_fail_limit: Consecutive preview failures before auto-close

        Raises:
            ValueError: If preview_fail_limit is below 1
        """
        self._gp = gp if gp is not None else load_gphoto2()
        self.events = events if events is not None else EventManager()
        self._codec = ParameterCodec(self._gp)

        self._abilities = abilities
        self._port_info = port_info
        if preview_fail_limit is None:
            preview_fail_limit = self.PREVIEW_FAIL_LIMIT
        if preview_fail_limit < 1:
            raise ValueError(f"preview_fail_limit must be at least 1, got {preview_fail_limit}")
        self.preview_fail_limit = preview_fail_limit

        self._camera = None
        self._preview_file = None
        self._preview_failures = 0
        self._status = Status.UNLOADED

        try:
            self._context = self._gp.Context()
        except self._gp.GPhoto2Error as e:
            logger.error(f"Unable to create gphoto2 context: {e}")
            self._context = None
            self._status = Status.UNAVAILABLE

    @property
    def status(self) -> Status:
        """Current session status."""
        return self._status

    @property
    def is_open(self) -> bool:
        """Check if the session holds a camera handle."""
        return self._camera is not None

    @property
    def consecutive_preview_failures(self) -> int:
        """Number of preview failures since the last good frame."""
        return self._preview_failures

    def _set_status(self, status: Status) -> None:
        self._status = status
        logger.debug(f"Camera status changed to {status.value}")
        self.events.emit(Notification.STATUS_CHANGED, status)

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """
        Open the camera.

        Does nothing if the camera is already open or the session is
        unavailable. Any failure moves the session to UNAVAILABLE.
        """
        if self._camera is not None:
            return
        if self._status is Status.UNAVAILABLE:
            logger.warning("Camera is unavailable, not opening")
            return

        self._set_status(Status.LOADING)

        try:
            self._camera = self._gp.Camera()
        except self._gp.GPhoto2Error as e:
            self._open_error("Unable to open camera", e)
            return

        try:
            self._camera.set_abilities(self._abilities)
        except self._gp.GPhoto2Error as e:
            self._open_error("Unable to set abilities for camera", e)
            return

        try:
            self._camera.set_port_info(self._port_info.port_info)
        except self._gp.GPhoto2Error as e:
            self._open_error("Unable to set port info for camera", e)
            return

        try:
            self._preview_file = self._gp.CameraFile()
        except self._gp.GPhoto2Error as e:
            self._open_error("Could not create capture file", e)
            return

        if self._has_parameter("viewfinder"):
            if not self.set_parameter("viewfinder", True):
                logger.warning("Failed to flap up camera mirror")

        self._preview_failures = 0
        self._set_status(Status.LOADED)
        logger.info("Camera opened")

    def _open_error(self, message: str, cause: Exception) -> None:
        logger.warning(f"{message}: {cause}")
        self._camera = None
        self._preview_file = None
        self._set_status(Status.UNAVAILABLE)
        self.events.emit(Notification.ERROR, CameraErrorKind.CAMERA_ERROR, "Unable to open camera")

    def close(self) -> None:
        """
        Close the camera.

        Does nothing if the camera is not open. If the library refuses to
        exit, the session goes back to LOADED and keeps the handle so that
        a later close can retry.
        """
        if self._camera is None:
            return

        self._set_status(Status.UNLOADING)

        try:
            self._camera.exit(self._context)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to close camera: {e}")
            self._set_status(Status.LOADED)
            self.events.emit(Notification.ERROR, CameraErrorKind.CAMERA_ERROR, "Unable to close camera")
            return

        self._preview_file = None
        self._camera = None
        self._preview_failures = 0
        self._set_status(Status.UNLOADED)
        logger.info("Camera closed")

    def stop_viewfinder(self) -> None:
        """Leave the ACTIVE state without touching the camera."""
        if self._status is not Status.ACTIVE:
            logger.debug(f"Viewfinder not running (status {self._status.value})")
            return

        self._set_status(Status.STOPPING)
        self._set_status(Status.LOADED)

    # -- preview -------------------------------------------------------------

    def capture_preview(self) -> Optional[Image.Image]:
        """
        Capture one viewfinder frame.

        Opens the camera if needed. A good frame is decoded, mirrored
        left/right and emitted as a preview notification. Failed frames are
        counted; reaching the failure limit closes the camera.

        Returns:
            Optional[Image.Image]: The emitted frame, or None on failure
        """
        self.open()
        if self._camera is None:
            return None

        if self._status is not Status.ACTIVE:
            self._set_status(Status.STARTING)

        image = None
        try:
            self._preview_file.clean()
            self._preview_file = self._camera.capture_preview(self._context)
            data = bytes(self._preview_file.get_data_and_size())
            image = self._decode(data)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Failed retrieving preview: {e}")
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Failed decoding preview frame: {e}")

        if image is None:
            self._preview_failed()
            return None

        self._preview_failures = 0
        if self._status is not Status.ACTIVE:
            self._set_status(Status.ACTIVE)

        frame = ImageOps.mirror(image)
        self.events.emit(Notification.PREVIEW_CAPTURED, frame)
        return frame

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image

    def _preview_failed(self) -> None:
        self._preview_failures = min(self._preview_failures + 1, self.preview_fail_limit)
        logger.debug(f"Preview failure {self._preview_failures}/{self.preview_fail_limit}")

        if self._preview_failures >= self.preview_fail_limit:
            logger.warning("Closing camera because of capturing fail")
            self.close()

    # -- still capture -------------------------------------------------------

    def capture_photo(self, request_id: int, filename: str) -> Optional[bytes]:
        """
        Capture a full resolution still and download it from the camera.

        Args:
            request_id: Consumer request id echoed in the notifications
            filename: Name the consumer wants the image stored under

        Returns:
            Optional[bytes]: The image data, or None if the capture failed
        """
        if self._camera is None:
            logger.warning(f"Capture {request_id} requested while camera is not open")
            self.events.emit(
                Notification.IMAGE_CAPTURE_ERROR, request_id,
                CaptureErrorReason.NOT_READY_ERROR, "Camera is not ready"
            )
            return None

        has_viewfinder = self._has_parameter("viewfinder")

        # Focusing
        if has_viewfinder:
            if not self.set_parameter("viewfinder", False):
                logger.warning("Failed to flap down camera mirror")
        elif self._has_parameter("autofocusedrive"):
            self.set_parameter("autofocusedrive", True)

        result = None
        try:
            file_path = self._camera.capture(self._gp.GP_CAPTURE_IMAGE, self._context)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Failed to capture frame: {e}")
            self.events.emit(
                Notification.IMAGE_CAPTURE_ERROR, request_id,
                CaptureErrorReason.RESOURCE_ERROR, "Failed to capture frame"
            )
        else:
            logger.debug(f"Captured frame: {file_path.folder} {file_path.name}")
            result = self._download(request_id, file_path, filename)
            self._drain_events(self.CAPTURE_EVENT_TIMEOUT_MS, report_unexpected=True)

        if has_viewfinder:
            if not self.set_parameter("viewfinder", True):
                logger.warning("Failed to flap up camera mirror")

        return result

    def _download(self, request_id: int, file_path: Any, filename: str) -> Optional[bytes]:
        camera_file = None
        try:
            camera_file = self._camera.file_get(
                file_path.folder, file_path.name, self._gp.GP_FILE_TYPE_NORMAL, self._context
            )
            data = bytes(camera_file.get_data_and_size())
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Failed to get file from camera: {e}")
            self.events.emit(
                Notification.IMAGE_CAPTURE_ERROR, request_id,
                CaptureErrorReason.RESOURCE_ERROR, "Failed to download file from camera"
            )
            return None
        finally:
            del camera_file

        self.events.emit(Notification.IMAGE_CAPTURED, request_id, data, filename)
        return data

    def _drain_events(self, timeout_ms: int, report_unexpected: bool = False) -> None:
        """Poll the camera event queue until it reports a timeout or an error."""
        while True:
            try:
                type_code, _data = self._camera.wait_for_event(timeout_ms, self._context)
            except self._gp.GPhoto2Error as e:
                logger.debug(f"Stopped waiting for camera events: {e}")
                return

            kind = event_kind(self._gp, type_code)
            if kind is CameraEventKind.TIMEOUT:
                return
            if kind is CameraEventKind.CAPTURE_COMPLETE:
                logger.debug("Capture completed")
            elif kind is not CameraEventKind.UNKNOWN and report_unexpected:
                logger.warning(f"Unexpected event received from camera: {kind.value}")

    # -- parameters ----------------------------------------------------------

    def _has_parameter(self, name: str) -> bool:
        """Check quietly whether a parameter with a typed mapping exists."""
        try:
            config = self._camera.get_config(self._context)
            widget = config.get_child_by_name(name)
            return self._codec.kind_of(widget) in ParameterCodec.READ_KINDS
        except (self._gp.GPhoto2Error, ValueError):
            return False

    def get_parameter(self, name: str) -> Optional[ParameterValue]:
        """
        Read a camera parameter.

        Args:
            name: Widget name, e.g. "iso" or "viewfinder"

        Returns:
            Optional[ParameterValue]: The value, or None if it cannot be read
        """
        if self._camera is None:
            logger.warning(f"Cannot read {name}: camera is not open")
            return None

        try:
            config = self._camera.get_config(self._context)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get root option from gphoto: {e}")
            return None

        try:
            widget = config.get_child_by_name(name)
            return self._codec.read(widget, name)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get value for option {name} from gphoto: {e}")
        except (ParameterError, ValueError) as e:
            logger.warning(f"Unable to read option {name}: {e}")
        return None

    def set_parameter(self, name: str, value: Any) -> bool:
        """
        Write a camera parameter and push the configuration to the camera.

        Args:
            name: Widget name
            value: A ParameterValue or a plain str, bool, int or float

        Returns:
            bool: True if the widget accepted the value and the camera
            accepted the configuration
        """
        if self._camera is None:
            logger.warning(f"Cannot set {name}: camera is not open")
            return False

        try:
            typed = ParameterValue.of(value)
        except TypeError as e:
            logger.warning(f"Failed to set value {value!r} to {name} option: {e}")
            return False

        try:
            config = self._camera.get_config(self._context)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get root option from gphoto: {e}")
            return False

        try:
            widget = config.get_child_by_name(name)
            raw = self._codec.encode(widget, name, typed)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get option {name} from gphoto: {e}")
            return False
        except (ParameterError, ValueError) as e:
            logger.warning(f"Unable to write option {name}: {e}")
            return False

        try:
            widget.set_value(raw)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Failed to set value {raw} to {name} option: {e}")
            return False

        try:
            self._camera.set_config(config, self._context)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Failed to set config to camera: {e}")
            return False

        self._drain_events(self.SETTLE_EVENT_TIMEOUT_MS)
        logger.debug(f"Set {name} to {raw}")
        return True

    def describe_parameter(self, name: str) -> Optional[ParameterInfo]:
        """Describe a parameter's kind, value and choices, or return None."""
        if self._camera is None:
            logger.warning(f"Cannot describe {name}: camera is not open")
            return None

        try:
            config = self._camera.get_config(self._context)
            widget = config.get_child_by_name(name)
            return self._codec.describe(widget, name)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get config widget {name} from gphoto: {e}")
        except (ParameterError, ValueError) as e:
            logger.warning(f"Unable to describe option {name}: {e}")
        return None
