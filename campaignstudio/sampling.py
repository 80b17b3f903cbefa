"""Frame timestamp sampling for representative stills."""

import math

from campaignstudio.models import FrameSampleSet

MIDDLE = "middle"

# Shorter media leaves no room to skip lead-in and tail material.
MIN_DURATION = 1.0


class SamplingError(ValueError):
    """Raised when timestamps cannot be sampled for the given media."""


def _check_duration(duration: float) -> None:
    if not math.isfinite(duration) or duration <= 0:
        raise SamplingError(f"Invalid media duration: {duration!r}")


def sample_timestamps(duration: float, count: int = 8) -> FrameSampleSet:
    """Return *count* evenly spaced timestamps, skipping the first and last moments.

    Sampling starts at ``min(0.5, duration * 0.1)`` and ends at
    ``max(duration - 0.5, duration * 0.9)`` to avoid black or silent edges.
    A *count* of 1 or less yields the single midpoint ``duration / 2``.
    """
    _check_duration(duration)
    if duration < MIN_DURATION:
        raise SamplingError(
            f"Media too short to sample frames: {duration}s (minimum {MIN_DURATION}s)"
        )

    if count <= 1:
        return FrameSampleSet(timestamps=[duration / 2], duration=duration)

    start = min(0.5, duration * 0.1)
    end = max(duration - 0.5, duration * 0.9)
    interval = (end - start) / (count - 1)

    timestamps = [start + interval * i for i in range(count)]
    return FrameSampleSet(timestamps=timestamps, duration=duration)


def resolve_frame_timestamp(duration: float, timestamp: float | str = MIDDLE) -> float:
    """Resolve a single-frame request to seconds.

    ``MIDDLE`` means the exact midpoint. No edge avoidance is applied.
    """
    _check_duration(duration)
    if timestamp == MIDDLE:
        return duration / 2
    if isinstance(timestamp, str):
        raise SamplingError(f"Unknown timestamp sentinel: {timestamp!r}")

    seconds = float(timestamp)
    if not 0 <= seconds <= duration:
        raise SamplingError(f"Timestamp {seconds}s is outside the media (0-{duration}s)")
    return seconds
