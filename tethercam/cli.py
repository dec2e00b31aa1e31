"""
Command-line interface for tethercam.

This module provides CLI commands for listing tethered cameras, grabbing a
preview frame, capturing a still and reading or writing camera parameters.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .exceptions import TetherCamError
from .events import Notification
from .logging_config import setup_logging
from .models import CapturedImage, ParameterValue
from .registry import DeviceRegistry
from .worker import CameraWorker

COMMAND_TIMEOUT = 60.0

VALUE_TYPES = {
    'string': str,
    'int': int,
    'real': float,
    'bool': lambda text: text.strip().lower() in ('1', 'true', 'yes', 'on'),
}


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default=None,
    help='Enable logging at the given level'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False),
    default=None,
    help='Custom path for the log file'
)
def cli(log_level: Optional[str], log_file: Optional[str]):
    """
    tethercam - tethered control of gphoto2 cameras.

    List attached cameras, grab viewfinder frames, capture stills and
    adjust camera parameters.
    """
    if log_level:
        setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)


def _device_option(func):
    return click.option(
        '--device', '-d',
        default=None,
        help='Camera model name (defaults to the first detected camera)'
    )(func)


def _open_worker(registry: DeviceRegistry, device: Optional[str]) -> CameraWorker:
    worker = CameraWorker.for_device(registry, device)
    errors = []
    worker.on(Notification.ERROR, lambda kind, message: errors.append(message))
    worker.open().result(timeout=COMMAND_TIMEOUT)
    if errors:
        worker.shutdown()
        raise click.ClickException(errors[0])
    return worker


@cli.command(name='list')
@click.option(
    '--format',
    'output_format',
    type=click.Choice(['table', 'json']),
    default='table',
    help='Output format for the camera list'
)
def list_cameras(output_format: str):
    """
    List attached cameras with the port they are connected to.
    """
    try:
        with DeviceRegistry() as registry:
            descriptors = registry.descriptors()
    except TetherCamError as e:
        click.echo(f"Error listing cameras: {e}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(
            [{'identifier': d.identifier, 'description': d.description} for d in descriptors],
            indent=2
        ))
        return

    if not descriptors:
        click.echo("No cameras detected.")
        return

    click.echo(f"Found {len(descriptors)} camera(s):\n")
    click.echo(f"{'Model':<40} {'Port':<20}")
    click.echo("-" * 60)
    for descriptor in descriptors:
        click.echo(f"{descriptor.identifier:<40} {descriptor.description:<20}")


@cli.command()
@_device_option
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Where to write the preview frame')
def preview(device: Optional[str], output: str):
    """
    Capture one viewfinder frame and save it (mirrored left/right).
    """
    try:
        with DeviceRegistry() as registry:
            with _open_worker(registry, device) as worker:
                frame = worker.capture_preview().result(timeout=COMMAND_TIMEOUT)
    except TetherCamError as e:
        click.echo(f"Preview failed: {e}", err=True)
        sys.exit(1)

    if frame is None:
        click.echo("Preview failed: camera returned no frame", err=True)
        sys.exit(1)

    frame.save(output)
    click.echo(f"Saved {frame.width}x{frame.height} preview to {output}")


@cli.command()
@_device_option
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Where to write the captured image')
def capture(device: Optional[str], output: str):
    """
    Capture a full resolution still and download it from the camera.
    """
    captured = []
    failures = []

    try:
        with DeviceRegistry() as registry:
            with _open_worker(registry, device) as worker:
                worker.on(
                    Notification.IMAGE_CAPTURED,
                    lambda request_id, data, filename: captured.append(CapturedImage(request_id, data, filename))
                )
                worker.on(
                    Notification.IMAGE_CAPTURE_ERROR,
                    lambda request_id, reason, message: failures.append(message)
                )
                worker.capture_photo(1, Path(output).name).result(timeout=COMMAND_TIMEOUT)
    except TetherCamError as e:
        click.echo(f"Capture failed: {e}", err=True)
        sys.exit(1)

    if not captured:
        message = failures[0] if failures else "no image received"
        click.echo(f"Capture failed: {message}", err=True)
        sys.exit(1)

    Path(output).write_bytes(captured[0].data)
    click.echo(f"Saved {len(captured[0].data)} bytes to {output}")


@cli.command(name='get')
@_device_option
@click.argument('name')
def get_parameter(device: Optional[str], name: str):
    """
    Print the value (and choices) of camera parameter NAME.
    """
    try:
        with DeviceRegistry() as registry:
            with _open_worker(registry, device) as worker:
                info = worker.describe_parameter(name).result(timeout=COMMAND_TIMEOUT)
    except TetherCamError as e:
        click.echo(f"Error reading {name}: {e}", err=True)
        sys.exit(1)

    if info is None or info.value is None:
        click.echo(f"Parameter {name} is not available", err=True)
        sys.exit(1)

    click.echo(f"{name} = {info.value} ({info.kind.value})")
    for choice in info.choices:
        marker = "*" if choice == str(info.value) else " "
        click.echo(f"  {marker} {choice}")


@cli.command(name='set')
@_device_option
@click.option(
    '--type', 'value_type',
    type=click.Choice(sorted(VALUE_TYPES)),
    default='string',
    help='How to interpret VALUE'
)
@click.argument('name')
@click.argument('value')
def set_parameter(device: Optional[str], value_type: str, name: str, value: str):
    """
    Set camera parameter NAME to VALUE.
    """
    try:
        typed = ParameterValue.of(VALUE_TYPES[value_type](value))
    except ValueError:
        click.echo(f"Invalid {value_type} value: {value}", err=True)
        sys.exit(1)

    try:
        with DeviceRegistry() as registry:
            with _open_worker(registry, device) as worker:
                accepted = worker.set_parameter(name, typed).result(timeout=COMMAND_TIMEOUT)
    except TetherCamError as e:
        click.echo(f"Error setting {name}: {e}", err=True)
        sys.exit(1)

    if not accepted:
        click.echo(f"Camera rejected {name} = {value}", err=True)
        sys.exit(1)

    click.echo(f"✓ {name} set to {typed}")


def main(args=None):
    """Main entry point for the CLI."""
    cli(args)


if __name__ == '__main__':
    main()
