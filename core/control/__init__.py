"""core/control — Pure input normalization engine for MIDI control surfaces.

No I/O, no threads, no clocks: every time-dependent call takes ``now``.
Port access, hot-plug polling, keystrokes and MQTT live in ingestion/.

Exports:
    RawSample, ControlKey helpers, mapping types   (types)
    scale                                          (scaling)
    HistoryTracker                                 (history)
    DebounceCoalescer                              (debounce)
    MessageClassifier, SampleOutcome               (classifier)
    ConnectivityWatchdog, LinkState                (watchdog)
    ControlEngine                                  (engine)
    parse_mappings                                 (mapping)
    parse_hotkey                                   (hotkeys)
"""

from core.control.classifier import Classification, MessageClassifier, SampleOutcome
from core.control.debounce import DebounceCoalescer
from core.control.engine import ControlEngine, EngineStatus, TickResult
from core.control.errors import ControlConfigError, ScalingRangeError
from core.control.history import HistoryTracker
from core.control.hotkeys import parse_hotkey
from core.control.mapping import parse_mapping_entry, parse_mappings
from core.control.scaling import scale
from core.control.types import (
    AttachEvent,
    DiscreteMapping,
    MappingTable,
    RangeMapping,
    RawSample,
    ResolvedAction,
    control_key,
)
from core.control.watchdog import ConnectivityWatchdog, LinkState

__all__ = [
    "AttachEvent",
    "Classification",
    "ConnectivityWatchdog",
    "ControlConfigError",
    "ControlEngine",
    "DebounceCoalescer",
    "DiscreteMapping",
    "EngineStatus",
    "HistoryTracker",
    "LinkState",
    "MappingTable",
    "MessageClassifier",
    "RangeMapping",
    "RawSample",
    "ResolvedAction",
    "SampleOutcome",
    "ScalingRangeError",
    "TickResult",
    "control_key",
    "parse_hotkey",
    "parse_mapping_entry",
    "parse_mappings",
    "scale",
]
