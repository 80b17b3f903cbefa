"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from campaignstudio.client import StudioClient
from campaignstudio.config import StudioConfig

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_config_path() -> Path:
    return FIXTURES_DIR / "sample_config.json"


@pytest.fixture
def sample_script() -> str:
    return (FIXTURES_DIR / "sample_script.txt").read_text()


@pytest.fixture
def config(tmp_path) -> StudioConfig:
    cfg = StudioConfig(api_key="test-key", poll_interval=0, poll_timeout=5)
    cfg.evals.datasets_dir = tmp_path / "datasets"
    cfg.evals.results_dir = tmp_path / "results"
    cfg.evals.ids_path = tmp_path / "eval-ids.json"
    return cfg


@pytest.fixture
def sdk() -> MagicMock:
    return MagicMock()


@pytest.fixture
def studio_client(config, sdk) -> StudioClient:
    return StudioClient(config, sdk=sdk)
