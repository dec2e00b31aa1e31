#!/usr/bin/env python3
"""
tethercam Live Preview Example

This example streams viewfinder frames from the default camera and
reports status changes and errors through tethercam's notifications.
The camera closes itself after too many consecutive preview failures.
"""

import signal
import sys
from datetime import datetime

from tethercam import CameraWorker, DeviceRegistry, Notification, Status, TetherCamError


class PreviewMonitor:
    """Example live view application."""

    def __init__(self, worker: CameraWorker):
        self.worker = worker
        self.running = False
        self.frames = 0

        # Set up notification handlers
        worker.on(Notification.STATUS_CHANGED, self.on_status_changed)
        worker.on(Notification.PREVIEW_CAPTURED, self.on_preview)
        worker.on(Notification.ERROR, self.on_error)

        # Set up signal handler for graceful shutdown
        signal.signal(signal.SIGINT, self.signal_handler)
        signal.signal(signal.SIGTERM, self.signal_handler)

    def on_status_changed(self, status: Status):
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{timestamp}] STATUS: {status.value}")
        if status is Status.UNLOADED and self.running:
            print("Camera closed, stopping preview.")
            self.running = False

    def on_preview(self, frame):
        self.frames += 1
        if self.frames % 25 == 0:
            print(f"  {self.frames} frames, last {frame.width}x{frame.height}")

    def on_error(self, kind, message):
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{timestamp}] ERROR: {message}")

    def signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        print(f"\nReceived signal {signum}, shutting down...")
        self.running = False

    def start(self):
        """Pull preview frames until interrupted or the camera closes."""
        self.worker.open().result(timeout=30)
        if self.worker.status is Status.UNAVAILABLE:
            return

        print("Streaming preview. Press Ctrl+C to stop.\n")
        self.running = True
        while self.running:
            self.worker.capture_preview().result(timeout=30)

        self.worker.stop_viewfinder().result(timeout=30)
        print(f"Received {self.frames} frames.")


def main():
    """Run the live preview example."""
    print("tethercam Live Preview Example")
    print("=" * 40)

    try:
        with DeviceRegistry() as registry:
            with CameraWorker.for_device(registry) as worker:
                PreviewMonitor(worker).start()
    except TetherCamError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
