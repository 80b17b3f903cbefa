"""Timestamp parsing and timing validation for generated video scripts.

Scripts annotate each beat with a range such as ``[00:00-00:02]``. A valid
script is a single gapless timeline that starts at zero and ends at the
requested duration, within a tolerance.
"""

import re

from campaignstudio.models import ScriptValidationResult, TimeRange

TIMESTAMP_PATTERN = re.compile(r"\[(\d{2}):(\d{2})-(\d{2}):(\d{2})\]", re.ASCII)

NO_TIMESTAMPS_ERROR = "No valid timestamp patterns found. Expected format: [MM:SS-MM:SS]"


def parse_timestamp(timestamp: str) -> int:
    """Convert ``MM:SS`` to total seconds."""
    minutes, seconds = timestamp.split(":")
    return int(minutes) * 60 + int(seconds)


def parse_time_ranges(text: str) -> list[TimeRange]:
    """Return every ``[MM:SS-MM:SS]`` range in *text*, in order of appearance.

    Near misses (single-digit fields, missing dash) are skipped rather than
    repaired. Ranges with ``end <= start`` are still returned; rejecting
    them is up to the caller.
    """
    ranges: list[TimeRange] = []
    for m in TIMESTAMP_PATTERN.finditer(text):
        start_min, start_sec, end_min, end_sec = m.groups()
        ranges.append(
            TimeRange(
                start=int(start_min) * 60 + int(start_sec),
                end=int(end_min) * 60 + int(end_sec),
                raw=m.group(0),
            )
        )
    return ranges


def has_valid_format(text: str) -> bool:
    return TIMESTAMP_PATTERN.search(text) is not None


def extract_duration(text: str) -> int | None:
    """End of the last range in text order, or None if there are no ranges."""
    ranges = parse_time_ranges(text)
    if not ranges:
        return None
    return ranges[-1].end


def validate_script(
    script: str, expected_seconds: float, tolerance: float = 1
) -> ScriptValidationResult:
    """Check that a script's ranges form one contiguous timeline.

    Never raises: every problem is reported in ``errors``. Segments and the
    total duration are returned even when the script is invalid.
    """
    segments = parse_time_ranges(script)
    if not segments:
        return ScriptValidationResult(valid=False, errors=[NO_TIMESTAMPS_ERROR])

    errors: list[str] = []

    first = segments[0]
    if first.start != 0:
        errors.append(
            f"First segment should start at 00:00, but starts at {first.raw.split('-')[0]}"
        )

    for prev, curr in zip(segments, segments[1:]):
        if curr.start != prev.end:
            errors.append(f"Gap or overlap between segments: {prev.raw} and {curr.raw}")

    for seg in segments:
        if seg.duration <= 0:
            errors.append(f"Invalid segment duration: {seg.raw} ({seg.duration}s)")

    # Last in text order, not the maximum end
    total_duration = segments[-1].end
    # NaN never compares within tolerance, so it counts as a mismatch
    if not abs(total_duration - expected_seconds) <= tolerance:
        errors.append(
            f"Total duration ({total_duration}s) doesn't match expected "
            f"({expected_seconds}s) within ±{tolerance}s tolerance"
        )

    return ScriptValidationResult(
        valid=not errors,
        errors=errors,
        segments=segments,
        total_duration=total_duration,
    )


def format_validation_result(result: ScriptValidationResult) -> str:
    lines: list[str] = []
    if result.valid:
        lines.append("Script format is valid")
    else:
        lines.append("Script format validation failed")

    total = result.total_duration if result.total_duration is not None else "N/A"
    lines.append(f"   Segments: {len(result.segments)}")
    lines.append(f"   Total duration: {total}s")

    if result.errors:
        lines.append("   Errors:")
        for err in result.errors:
            lines.append(f"     - {err}")

    return "\n".join(lines)
