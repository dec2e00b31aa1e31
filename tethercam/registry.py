"""
Device registry backed by the libgphoto2 catalogues.

This module provides the DeviceRegistry class that loads the static camera
abilities catalogue and the port catalogue once, enumerates attached cameras
on demand and resolves device identifiers to the abilities and port records
a camera session needs.
"""

import logging
import threading
from typing import Any, List, Optional

from .exceptions import RegistryError
from .library import load_gphoto2
from .models import DeviceDescriptor, PortInfoHandle

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Process-wide catalogue of attached gphoto2 cameras.

    The library context, abilities list and port-info list are created once.
    Enumeration results are cached until refresh() is called; the cache is
    guarded by a lock so the registry may be queried from several threads.
    If initialization fails the registry stays usable but empty.
    """

    def __init__(self, gp: Optional[Any] = None):
        """
        Initialize the registry and load the library catalogues.

        Args:
            gp: Optional gphoto2 binding to use. Defaults to the installed one.

        Raises:
            LibraryUnavailableError: If no binding is given and gphoto2 is not installed
        """
        self._gp = gp if gp is not None else load_gphoto2()
        self._context = None
        self._abilities_list = None
        self._port_info_list = None
        self._available = False

        self._lock = threading.Lock()
        self._devices: List[str] = []
        self._descriptions: List[str] = []
        self._default_device = ""

        try:
            self._context = self._gp.Context()
            self._abilities_list = self._init_abilities_list()
            self._port_info_list = self._init_port_info_list()
            self._available = True
            logger.info("Device registry initialized")
        except RegistryError:
            logger.warning("Device registry is unavailable, no cameras will be reported")
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to create gphoto2 context: {e}")

    def _init_abilities_list(self) -> Any:
        """Create the abilities catalogue and fill it from the built-in table."""
        try:
            abilities_list = self._gp.CameraAbilitiesList()
        except self._gp.GPhoto2Error as e:
            raise RegistryError("Unable to create camera abilities list", stage="abilities", cause=e)

        try:
            abilities_list.load(self._context)
        except self._gp.GPhoto2Error as e:
            raise RegistryError("Unable to load camera abilities list", stage="abilities", cause=e)

        return abilities_list

    def _init_port_info_list(self) -> Any:
        """Create the port catalogue and scan the available ports."""
        try:
            port_info_list = self._gp.PortInfoList()
        except self._gp.GPhoto2Error as e:
            raise RegistryError("Unable to create port info list", stage="ports", cause=e)

        try:
            port_info_list.load()
        except self._gp.GPhoto2Error as e:
            raise RegistryError("Unable to load port info list", stage="ports", cause=e)

        try:
            count = port_info_list.count()
        except self._gp.GPhoto2Error as e:
            raise RegistryError("Port info list is empty", stage="ports", cause=e)
        logger.debug(f"Port info list holds {count} ports")

        return port_info_list

    @property
    def library(self) -> Any:
        """The gphoto2 binding the registry was loaded with."""
        return self._gp

    @property
    def available(self) -> bool:
        """Check if the library catalogues were loaded successfully."""
        return self._available

    def devices(self) -> List[str]:
        """
        Get the identifiers (model names) of the attached cameras.

        Returns:
            List[str]: Camera identifiers, in detection order
        """
        self._update_devices()
        with self._lock:
            return list(self._devices)

    def descriptions(self) -> List[str]:
        """
        Get the port descriptions parallel to devices().

        Returns:
            List[str]: Port paths such as ``usb:001,004``
        """
        self._update_devices()
        with self._lock:
            return list(self._descriptions)

    def descriptors(self) -> List[DeviceDescriptor]:
        """Get the attached cameras as identifier/description pairs."""
        self._update_devices()
        with self._lock:
            return [
                DeviceDescriptor(identifier, description)
                for identifier, description in zip(self._devices, self._descriptions)
            ]

    def default_device(self) -> str:
        """Get the first detected camera identifier, or an empty string."""
        self._update_devices()
        with self._lock:
            return self._default_device

    def description_for(self, device_id: str) -> str:
        """
        Get the port description of a camera.

        Args:
            device_id: The camera identifier

        Returns:
            str: The description, or an empty string if the camera is unknown
        """
        self._update_devices()
        with self._lock:
            for identifier, description in zip(self._devices, self._descriptions):
                if identifier == device_id:
                    return description
        return ""

    def abilities_for(self, device_id: str) -> Optional[Any]:
        """
        Look up the abilities record of a camera model.

        Args:
            device_id: The camera identifier (model name)

        Returns:
            Optional[CameraAbilities]: The abilities, or None if the model is unknown
        """
        if not self._available:
            return None

        try:
            index = self._abilities_list.lookup_model(device_id)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to find camera abilities for {device_id}: {e}")
            return None

        try:
            return self._abilities_list.get_abilities(index)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get camera abilities for {device_id}: {e}")
            return None

    def port_info_for(self, description: str) -> Optional[PortInfoHandle]:
        """
        Look up the port record for a port description.

        Args:
            description: Port path as returned by descriptions()

        Returns:
            Optional[PortInfoHandle]: The port record bound to its catalogue,
            or None if the path is unknown
        """
        if not self._available:
            return None

        try:
            index = self._port_info_list.lookup_path(description)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to find camera port {description}: {e}")
            return None

        try:
            port_info = self._port_info_list.get_info(index)
        except self._gp.GPhoto2Error as e:
            logger.warning(f"Unable to get camera port info for {description}: {e}")
            return None

        return PortInfoHandle(port_info=port_info, port_info_list=self._port_info_list)

    def refresh(self) -> None:
        """Drop the cached enumeration so the next query detects again."""
        with self._lock:
            self._devices = []
            self._descriptions = []
            self._default_device = ""
        logger.debug("Device cache cleared")

    def _update_devices(self) -> None:
        """Detect attached cameras unless the cache already holds results."""
        with self._lock:
            if self._devices or not self._available:
                return

            try:
                camera_list = self._abilities_list.detect(self._port_info_list, self._context)
            except self._gp.GPhoto2Error as e:
                logger.warning(f"Unable to detect cameras: {e}")
                return

            try:
                count = camera_list.count()
            except self._gp.GPhoto2Error:
                logger.debug("Camera not found")
                return

            devices = []
            descriptions = []
            for index in range(count):
                try:
                    name = camera_list.get_name(index)
                except self._gp.GPhoto2Error as e:
                    logger.warning(f"Unable to get camera name: {e}")
                    continue

                try:
                    description = camera_list.get_value(index)
                except self._gp.GPhoto2Error as e:
                    logger.warning(f"Unable to get camera description: {e}")
                    continue

                logger.debug(f"Found {name} at port {description}")
                devices.append(name)
                descriptions.append(description)

            self._devices = devices
            self._descriptions = descriptions
            self._default_device = devices[0] if devices else ""

            if devices:
                logger.info(f"Detected {len(devices)} camera(s)")

    def close(self) -> None:
        """Release the port catalogue, the abilities catalogue and the context."""
        self._available = False
        self._port_info_list = None
        self._abilities_list = None
        self._context = None
        self.refresh()
        logger.debug("Device registry closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - release the library catalogues."""
        self.close()
