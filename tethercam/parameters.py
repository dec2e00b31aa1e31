"""
Translation between camera configuration widgets and typed parameter values.

Only radio and toggle widgets have a typed mapping. Radio widgets read as
strings and accept string, real and integer writes; numeric writes select
one of the widget's string choices. Toggle widgets read as booleans and
accept anything that coerces to an integer.
"""

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import ParameterError, UnsupportedWidgetError
from .library import widget_kind
from .models import ParameterInfo, ParameterValue, ValueKind, WidgetKind

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r'^[+-]?\d+$')


def parse_real(choice: str) -> Optional[float]:
    """
    Parse a widget choice as a real number.

    A decimal comma is accepted ("1,8" is 1.8); some gphoto2 translations
    use it in their choice strings.

    Returns:
        Optional[float]: The number, or None if the choice is not numeric
    """
    try:
        value = float(choice.strip().replace(',', '.'))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_int(choice: str) -> Optional[int]:
    """Parse a widget choice as a plain decimal integer, or return None."""
    text = choice.strip()
    if not _INTEGER_RE.match(text):
        return None
    return int(text)


def match_real_choice(choices: Iterable[str], target: float, tolerance: float) -> Optional[str]:
    """
    Find the first choice whose numeric value is within tolerance of target.

    The first match wins even if a later choice is closer.
    """
    for choice in choices:
        value = parse_real(choice)
        if value is None:
            logger.debug(f"Failed to convert value {choice!r} to double")
            continue
        if abs(value - target) < tolerance:
            return choice
    return None


def match_int_choice(choices: Iterable[str], target: int) -> Optional[str]:
    """
    Find the first choice equal to target.

    A target of -1 also matches the first non-numeric choice, which is how
    cameras list an automatic setting (e.g. "Auto" ISO) ahead of the numbers.
    """
    for choice in choices:
        value = parse_int(choice)
        if (value is not None and value == target) or (value is None and target == -1):
            return choice
    return None


class ParameterCodec:
    """
    Reads and encodes typed values for configuration widgets.

    The codec never talks to the camera itself; the session fetches the
    configuration tree, hands widgets to the codec and pushes the tree back.
    """

    REAL_MATCH_TOLERANCE = 0.1

    # Widget kind -> variant produced by reads
    READ_KINDS: Dict[WidgetKind, ValueKind] = {
        WidgetKind.RADIO: ValueKind.STRING,
        WidgetKind.TOGGLE: ValueKind.BOOL,
    }

    # Widget kind -> variants accepted by writes
    WRITE_KINDS: Dict[WidgetKind, Tuple[ValueKind, ...]] = {
        WidgetKind.RADIO: (ValueKind.STRING, ValueKind.REAL, ValueKind.INT),
        WidgetKind.TOGGLE: (ValueKind.BOOL, ValueKind.INT, ValueKind.REAL),
    }

    def __init__(self, gp: Any):
        self._gp = gp

    def kind_of(self, widget: Any) -> WidgetKind:
        return widget_kind(self._gp, widget.get_type())

    @staticmethod
    def choices(widget: Any) -> List[str]:
        return [widget.get_choice(index) for index in range(widget.count_choices())]

    def read(self, widget: Any, name: str) -> ParameterValue:
        """
        Read the typed value of a widget.

        Args:
            widget: The configuration widget
            name: Parameter name, for messages

        Returns:
            ParameterValue: STRING for radio widgets, BOOL for toggles

        Raises:
            UnsupportedWidgetError: If the widget kind has no typed mapping
            GPhoto2Error: If the library fails to read the widget
        """
        kind = self.kind_of(widget)
        if kind not in self.READ_KINDS:
            raise UnsupportedWidgetError(
                f"Options of type {kind.value} are currently not supported", name=name
            )

        value = widget.get_value()
        if kind is WidgetKind.RADIO:
            return ParameterValue.string(value if value is not None else "")
        return ParameterValue.boolean(value != 0)

    def encode(self, widget: Any, name: str, value: ParameterValue) -> Any:
        """
        Convert a typed value into the raw value the widget accepts.

        Args:
            widget: The configuration widget
            name: Parameter name, for messages
            value: The value to write

        Returns:
            The raw value for ``widget.set_value()``: a choice string for
            radio widgets, an int for toggles

        Raises:
            UnsupportedWidgetError: If the widget kind or the value kind is not supported
            ParameterError: If no radio choice matches a numeric value
        """
        kind = self.kind_of(widget)
        accepted = self.WRITE_KINDS.get(kind)
        if accepted is None:
            raise UnsupportedWidgetError(
                f"Options of type {kind.value} are currently not supported", name=name
            )
        if value.kind not in accepted:
            raise UnsupportedWidgetError(
                f"Failed to set value {value} to {name} option. Type {value.kind.value} is not supported",
                name=name
            )

        if kind is WidgetKind.TOGGLE:
            if value.kind is ValueKind.REAL:
                if not math.isfinite(value.value):
                    raise ParameterError(f"Can't convert {value} to a toggle value for option {name}", name=name)
                return int(round(value.value))
            return int(value.value)

        if value.kind is ValueKind.STRING:
            return value.value

        choices = self.choices(widget)
        if value.kind is ValueKind.REAL:
            choice = match_real_choice(choices, value.value, self.REAL_MATCH_TOLERANCE)
        else:
            choice = match_int_choice(choices, value.value)

        if choice is None:
            raise ParameterError(f"Can't find value matching to {value} for option {name}", name=name)
        return choice

    def describe(self, widget: Any, name: str) -> ParameterInfo:
        """Snapshot a widget's kind, typed value and choices for diagnostics."""
        kind = self.kind_of(widget)
        value = None
        if kind in self.READ_KINDS:
            value = self.read(widget, name)

        choices: List[str] = []
        if kind in (WidgetKind.RADIO, WidgetKind.MENU):
            choices = self.choices(widget)

        logger.debug(f"Option {kind.value} {name} {value} choices={choices}")
        return ParameterInfo(name=name, kind=kind, value=value, choices=choices)
