"""core/control/scaling.py — Linear rescaling of raw controller values.

    percent = (raw - min) / (max - min)
    result  = round_half_up(to_min + percent * (to_max - to_min))

No clamping: a raw value outside ``[min, max]`` extrapolates. That is a
configuration freedom (e.g. a fader that only uses part of its travel), not
something to hide.
"""

from __future__ import annotations

import math

from core.control.errors import ScalingRangeError

DEFAULT_MIN: float = 0
DEFAULT_MAX: float = 127
DEFAULT_TO_MIN: float = 0
DEFAULT_TO_MAX: float = 10


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; controllers expect 0.5 -> 1.
    return math.floor(value + 0.5)


def scale(
    raw_value: float,
    min_value: float = DEFAULT_MIN,
    max_value: float = DEFAULT_MAX,
    to_min: float = DEFAULT_TO_MIN,
    to_max: float = DEFAULT_TO_MAX,
) -> int:
    """Map ``raw_value`` from ``[min_value, max_value]`` onto ``[to_min, to_max]``.

    Args:
        raw_value: Raw controller byte (usually 0–127).
        min_value: Raw value that maps to ``to_min``.
        max_value: Raw value that maps to ``to_max``.
        to_min: Output at ``min_value``.
        to_max: Output at ``max_value``.

    Returns:
        The rescaled value rounded to the nearest integer (halves round up).

    Raises:
        ScalingRangeError: If ``min_value == max_value``.

    Example:
        >>> scale(100)
        8
        >>> scale(64, 0, 127, 0, 100)
        50
    """
    if max_value == min_value:
        raise ScalingRangeError(min_value, max_value)
    percent = (raw_value - min_value) / (max_value - min_value)
    return _round_half_up(to_min + percent * (to_max - to_min))
