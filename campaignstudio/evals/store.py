"""Flat JSON map from eval names to hosted eval ids."""

import json
from pathlib import Path


def load_eval_ids(path: str | Path) -> dict[str, str]:
    """Return the saved ids, or an empty map if none have been saved yet."""
    path = Path(path)
    if not path.exists():
        return {}
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Eval id file {path} must contain a JSON object")
    return data


def save_eval_ids(path: str | Path, ids: dict[str, str]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(ids, indent=2))
