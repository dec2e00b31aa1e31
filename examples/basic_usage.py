#!/usr/bin/env python3
"""
Basic tethercam Usage Example

This example demonstrates the fundamental operations of tethercam:
- Detecting attached cameras
- Opening the default camera on a worker thread
- Reading and writing camera parameters
- Capturing a still image
"""

from pathlib import Path

from tethercam import CameraWorker, DeviceRegistry, Notification, TetherCamError


def main():
    """Demonstrate basic tethercam operations."""
    print("tethercam Basic Usage Example")
    print("=" * 40)

    print("Loading camera catalogues...")
    try:
        registry = DeviceRegistry()
    except TetherCamError as e:
        print(f"Error loading gphoto2: {e}")
        return

    with registry:
        # Detect currently attached cameras
        print("\n1. Detecting attached cameras...")
        descriptors = registry.descriptors()
        print(f"Found {len(descriptors)} camera(s)")
        for descriptor in descriptors:
            print(f"  {descriptor.identifier} at {descriptor.description}")

        if not descriptors:
            return

        print(f"\n2. Opening {registry.default_device()}...")
        with CameraWorker.for_device(registry) as worker:
            worker.on(Notification.STATUS_CHANGED, lambda status: print(f"  Status: {status.value}"))
            worker.on(Notification.ERROR, lambda kind, message: print(f"  Error: {message}"))
            worker.open().result(timeout=30)

            print("\n3. Reading parameters...")
            for name in ("iso", "aperture", "shutterspeed"):
                value = worker.get_parameter(name).result(timeout=30)
                print(f"  {name}: {value if value is not None else 'N/A'}")

            print("\n4. Setting ISO to automatic...")
            if worker.set_parameter("iso", -1).result(timeout=30):
                print("  ISO set to Auto")
            else:
                print("  Camera has no automatic ISO")

            print("\n5. Capturing a still...")
            worker.on(
                Notification.IMAGE_CAPTURED,
                lambda request_id, data, filename: Path(filename).write_bytes(data)
            )
            worker.on(
                Notification.IMAGE_CAPTURE_ERROR,
                lambda request_id, reason, message: print(f"  Capture {request_id} failed: {message}")
            )
            data = worker.capture_photo(1, "basic_usage.jpg").result(timeout=60)
            if data is not None:
                print(f"  Saved {len(data)} bytes to basic_usage.jpg")

    print("\nBasic usage example completed!")


if __name__ == "__main__":
    main()
