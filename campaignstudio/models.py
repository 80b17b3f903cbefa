"""Shared data types used across Campaign Studio."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class TimeRange:
    """A start/end pair in whole seconds, parsed from one ``[MM:SS-MM:SS]`` token."""

    start: int
    end: int
    raw: str = ""

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass
class ScriptValidationResult:
    """Outcome of checking a script's timing annotations."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    segments: list[TimeRange] = field(default_factory=list)
    total_duration: int | None = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "segments": [
                {
                    "raw": s.raw,
                    "start": s.start,
                    "end": s.end,
                    "duration": s.duration,
                }
                for s in self.segments
            ],
            "totalDuration": self.total_duration,
        }


@dataclass
class FrameSampleSet:
    """Timestamps chosen for still-frame extraction from a video."""

    timestamps: list[float]
    duration: float


@dataclass
class FrameExtraction:
    """Frames written to disk, in timestamp order."""

    frames: list[Path]
    timestamps: list[float]
    duration: float


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    width: int
    height: int
    fps: float
    codec_video: str
    codec_audio: str | None = None


@dataclass
class ImagePayload:
    """Decoded inline image."""

    mime: str
    data: bytes
    name: str = "image.png"


@dataclass
class GeneratedImage:
    """Base64 image returned by the hosted image API."""

    base64: str
    mime: str

    def to_dict(self) -> dict:
        return {"base64": self.base64, "mime": self.mime}


@dataclass
class VideoJob:
    """Status of an asynchronous video generation job."""

    id: str
    status: str
    error: str | None = None
