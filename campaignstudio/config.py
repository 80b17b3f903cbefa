"""Runtime configuration shared by the CLI, the app factory and the services."""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass
class ModelConfig:
    """Hosted model names used for each operation."""

    image: str = "gpt-image-1"
    text: str = "gpt-4o-mini"
    vision: str = "gpt-4o-mini"
    video: str = "sora-2-pro"


@dataclass
class EvalConfig:
    """Locations used by the evaluation harness."""

    datasets_dir: Path = Path("evals/datasets")
    results_dir: Path = Path("evals/results")
    ids_path: Path = Path("evals/eval-ids.json")


@dataclass
class StudioConfig:
    """Top-level configuration."""

    api_key: str | None = None
    base_url: str | None = None
    host: str = "127.0.0.1"
    port: int = 8787
    max_upload_bytes: int = 12 * 1024 * 1024
    max_json_bytes: int = 15 * 1024 * 1024
    image_size: str = "1024x1536"
    video_size: str = "720x1280"
    allowed_seconds: tuple[int, ...] = (4, 8, 12)
    poll_interval: float = 10.0
    poll_timeout: float = 600.0
    models: ModelConfig = field(default_factory=ModelConfig)
    evals: EvalConfig = field(default_factory=EvalConfig)

    @property
    def video_dimensions(self) -> tuple[int, int]:
        width, height = self.video_size.lower().split("x")
        return int(width), int(height)


def load_config(env: Mapping[str, str] | None = None) -> StudioConfig:
    """Build a config from environment variables (after loading ``.env``)."""
    if env is None:
        load_dotenv()
        env = os.environ

    try:
        port = int(env.get("PORT", 8787))
        poll_interval = float(env.get("POLL_INTERVAL", 10.0))
        poll_timeout = float(env.get("POLL_TIMEOUT", 600.0))
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    return StudioConfig(
        api_key=env.get("OPENAI_API_KEY") or None,
        base_url=env.get("OPENAI_BASE_URL") or None,
        host=env.get("HOST", "127.0.0.1"),
        port=port,
        poll_interval=poll_interval,
        poll_timeout=poll_timeout,
    )


def load_config_file(path: str | Path, base: StudioConfig | None = None) -> StudioConfig:
    """Overlay settings from a JSON file onto *base* (or the defaults)."""
    path = Path(path)
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    config = base or StudioConfig()
    known = {f.name for f in fields(StudioConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    overrides = {k: v for k, v in data.items() if k not in ("models", "evals")}
    if "allowed_seconds" in overrides:
        overrides["allowed_seconds"] = tuple(int(s) for s in overrides["allowed_seconds"])
    if "models" in data:
        overrides["models"] = replace(config.models, **data["models"])
    if "evals" in data:
        overrides["evals"] = replace(
            config.evals, **{k: Path(v) for k, v in data["evals"].items()}
        )
    return replace(config, **overrides)
