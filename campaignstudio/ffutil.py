"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from campaignstudio.datauri import to_data_url
from campaignstudio.models import FrameExtraction, ProbeResult
from campaignstudio.sampling import MIDDLE, resolve_frame_timestamp, sample_timestamps

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class ProbeError(RuntimeError):
    """Raised when ffprobe cannot report a usable duration."""


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def _run_ffprobe(input_path: Path) -> dict:
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise ProbeError(
            f"Failed to probe video {input_path}: {result.stderr.strip() or f'rc={result.returncode}'}"
        )
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"Failed to probe video {input_path}: {e}") from e


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    data = _run_ffprobe(input_path)
    streams = data.get("streams", [])

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), None)

    if video_stream is None:
        raise ValueError(f"No video stream found in {input_path}")

    # Parse fps from r_frame_rate (e.g. "30/1")
    num, den = video_stream.get("r_frame_rate", "0/1").split("/")
    fps = int(num) / int(den) if int(den) else 0.0

    return ProbeResult(
        duration=_parse_duration(data, input_path),
        width=int(video_stream["width"]),
        height=int(video_stream["height"]),
        fps=fps,
        codec_video=video_stream["codec_name"],
        codec_audio=audio_stream["codec_name"] if audio_stream else None,
    )


def _parse_duration(data: dict, input_path: Path) -> float:
    raw = data.get("format", {}).get("duration")
    try:
        duration = float(raw)
    except (TypeError, ValueError):
        raise ProbeError(f"Could not determine video duration for {input_path}") from None
    if duration <= 0:
        raise ProbeError(f"Could not determine video duration for {input_path}")
    return duration


def probe_duration(input_path: Path) -> float:
    """Return the media duration in seconds."""
    return _parse_duration(_run_ffprobe(input_path), input_path)


def extract_frame(input_path: Path, timestamp: float, output_path: Path) -> Path:
    """Write the frame at *timestamp* seconds to *output_path*."""
    cmd = [
        "ffmpeg", "-y",
        "-ss", f"{timestamp:.3f}",
        "-i", str(input_path),
        "-frames:v", "1",
        "-q:v", "2",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return output_path


def extract_frames(
    input_path: Path,
    output_dir: Path | None = None,
    count: int = 8,
    max_workers: int = 4,
) -> FrameExtraction:
    """Extract *count* evenly spaced frames as PNG files.

    Extractions run concurrently; each reads the source independently, so
    the returned frame list is ordered by timestamp, not completion.
    Without *output_dir* the frames go to a new temporary directory owned
    by the caller; ``cleanup_frames(..., remove_dir=True)`` removes it.
    """
    duration = probe_duration(input_path)
    samples = sample_timestamps(duration, count)

    if output_dir is None:
        output_dir = Path(tempfile.mkdtemp(prefix="frames-"))
    output_dir.mkdir(parents=True, exist_ok=True)

    frame_paths = [
        output_dir / f"frame-{i:03d}.png" for i in range(len(samples.timestamps))
    ]
    logger.info(
        "[frames] extracting %d frames from %s (%.2fs)",
        len(frame_paths), input_path, duration,
    )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        frames = list(
            pool.map(
                lambda args: extract_frame(input_path, *args),
                zip(samples.timestamps, frame_paths),
            )
        )

    return FrameExtraction(frames=frames, timestamps=samples.timestamps, duration=duration)


def extract_single_frame(
    input_path: Path,
    timestamp: float | str = MIDDLE,
    output_path: Path | None = None,
) -> Path:
    """Extract one frame at *timestamp* seconds, or at the midpoint for ``MIDDLE``."""
    seconds = resolve_frame_timestamp(probe_duration(input_path), timestamp)
    if output_path is None:
        fd, name = tempfile.mkstemp(prefix="frame-", suffix=".png")
        os.close(fd)
        output_path = Path(name)
    return extract_frame(input_path, seconds, output_path)


def frames_to_data_urls(frame_paths: list[Path]) -> list[str]:
    return [to_data_url(p.read_bytes(), "image/png") for p in frame_paths]


def cleanup_frames(frame_paths: list[Path], remove_dir: bool = False) -> None:
    """Delete extracted frame files, ignoring ones already gone.

    With *remove_dir*, the directories that held the frames are removed too
    once they are empty, e.g. the temporary directory ``extract_frames``
    creates when no ``output_dir`` is given.
    """
    parents = {Path(fp).parent for fp in frame_paths}
    for fp in frame_paths:
        Path(fp).unlink(missing_ok=True)
    if not remove_dir:
        return
    for parent in parents:
        if parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
