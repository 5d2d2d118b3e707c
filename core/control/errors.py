"""Exception types for the control normalization engine.

Configuration problems are ``ValueError`` subclasses so callers that only
care about "bad input" can keep catching ``ValueError``.
"""

from __future__ import annotations


class ControlConfigError(ValueError):
    """A mapping entry or engine setting is unusable.

    Raised at load time for malformed mapping entries and at the point of use
    for values that only fail when applied (see ``ScalingRangeError``).
    """


class ScalingRangeError(ControlConfigError):
    """Raised when a range mapping has ``min == max``.

    Args:
        min_value: The configured source minimum.
        max_value: The configured source maximum.
    """

    def __init__(self, min_value: float, max_value: float) -> None:
        """Initialize with the offending source range."""
        self.min_value = min_value
        self.max_value = max_value
        super().__init__(
            f"Source range is empty (min={min_value}, max={max_value}); "
            "cannot scale, fix the mapping's min/max"
        )
