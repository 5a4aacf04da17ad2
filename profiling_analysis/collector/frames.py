# profiling_analysis/collector/frames.py - Raw captured frames and events
"""
Raw event types consumed by the aggregators.

A sample source yields one item per captured sample: either a Frame
(function, file, line) or an invalid marker for samples whose symbol could
not be resolved. An allocation event source yields AllocationEvent items.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from profiling_analysis.collector.snapshot import Location


# Name used by samplers for frames they could not symbolize
UNKNOWN_FUNCTION = "unknown function"


class _InvalidFrame:
    """Marker for a captured frame that cannot be attributed to a location."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "INVALID_FRAME"

    def __reduce__(self):
        return (_InvalidFrame, ())


INVALID_FRAME = _InvalidFrame()


@dataclass(frozen=True)
class Frame:
    """
    A resolved stack frame.
    """
    function: str
    file: str
    line: int

    @property
    def location(self) -> Location:
        return Location(self.function, self.file, self.line)


@dataclass(frozen=True)
class AllocationEvent:
    """
    A single captured allocation.

    frame is the allocating frame, or INVALID_FRAME / None when the stack
    trace was empty or unresolved.
    """
    size: int
    frame: object = INVALID_FRAME


RawFrame = Union[Frame, tuple, _InvalidFrame, None]

# A sample source is any zero-argument callable returning the captured frames
SampleSource = Callable[[], Iterable[RawFrame]]
AllocationSource = Callable[[], Iterable[AllocationEvent]]


def resolve_frame(raw) -> Optional[Location]:
    """
    Convert a raw captured frame into a Location.

    Args:
        raw: Frame, Location, (function, file, line) tuple or invalid marker

    Returns:
        Location, or None if the frame is invalid
    """
    if raw is None or raw is INVALID_FRAME:
        return None

    if isinstance(raw, (Frame, Location)):
        function, file, line = raw.function, raw.file, raw.line
    elif isinstance(raw, tuple) and len(raw) == 3:
        function, file, line = raw
    else:
        return None

    if not isinstance(function, str) or not isinstance(file, str):
        return None
    if isinstance(line, bool) or not isinstance(line, int):
        return None
    if not function or function == UNKNOWN_FUNCTION:
        return None

    return Location(function, file, line)
