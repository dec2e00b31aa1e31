"""
Pytest configuration and shared fixtures for tethercam tests.

This module provides the fake gphoto2 binding, sample preview frames and
notification recorders used across all test modules.
"""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add the project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fake_gphoto import FakeGPhoto
from tethercam import EventManager, Notification, PortInfoHandle
from tethercam.session import CameraSession

CAMERA_MODEL = "Canon EOS 5D"
CAMERA_PORT = "usb:001,004"


# Test markers configuration
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "slow: marks tests as slow running tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names and paths."""
    for item in items:
        if "test_worker" in item.fspath.basename or "test_cli" in item.fspath.basename:
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name.lower():
            item.add_marker(pytest.mark.slow)


def make_png(pixels):
    """Encode a single-row RGB image with the given pixels as PNG bytes."""
    image = Image.new("RGB", (len(pixels), 1))
    for x, pixel in enumerate(pixels):
        image.putpixel((x, 0), pixel)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


RED = (255, 0, 0)
BLUE = (0, 0, 255)


class NotificationRecorder:
    """Collects every notification of an EventManager in emission order."""

    def __init__(self, events, calls=None):
        self.records = []
        self._calls = calls
        for notification in Notification:
            events.subscribe(notification, self._recorder(notification))

    def _recorder(self, notification):
        def record(*args):
            self.records.append((notification,) + args)
            if self._calls is not None:
                self._calls.append(("notify", notification.value) + args)
        return record

    def of(self, notification):
        return [record[1:] for record in self.records if record[0] is notification]

    def statuses(self):
        return [args[0] for args in self.of(Notification.STATUS_CHANGED)]


# Shared fixtures
@pytest.fixture
def preview_png():
    """A 2x1 PNG: red pixel on the left, blue pixel on the right."""
    return make_png([RED, BLUE])


@pytest.fixture
def fake_gp(preview_png):
    """A fake gphoto2 binding with one attached camera."""
    gp = FakeGPhoto(detected=[(CAMERA_MODEL, CAMERA_PORT)])
    gp.preview_data = preview_png
    return gp


@pytest.fixture
def dslr_gp(fake_gp):
    """Fake binding whose camera exposes a mirror, ISO, aperture and a text widget."""
    fake_gp.add_toggle("viewfinder", 0)
    fake_gp.add_radio("iso", "100", ["Auto", "100", "200", "400"])
    fake_gp.add_radio("aperture", "2.8", ["1,8", "2.8", "5.6", "5.65", "8"])
    fake_gp.add_radio("shutterspeed", "1/60", ["bulb", "30", "1/60", "1/125"])
    fake_gp.add_widget("artist", fake_gp.GP_WIDGET_TEXT, "nobody")
    return fake_gp


@pytest.fixture
def port_handle():
    """A port record bound to a (fake) catalogue object."""
    return PortInfoHandle(port_info=("port", CAMERA_PORT), port_info_list=object())


@pytest.fixture
def events():
    """A fresh EventManager."""
    return EventManager()


@pytest.fixture
def recorder(events, fake_gp):
    """Records notifications, also appending them to the fake's call log."""
    return NotificationRecorder(events, fake_gp.calls)


@pytest.fixture
def session(fake_gp, events, port_handle, recorder):
    """A closed CameraSession driving the fake binding."""
    return CameraSession(("abilities", CAMERA_MODEL), port_handle, events=events, gp=fake_gp)
