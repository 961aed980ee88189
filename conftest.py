"""Pytest configuration — ensures the project root is importable."""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep a developer's `.env` and BROKER_VALIDATOR_* variables out of the suite."""
    for name in list(os.environ):
        if name.startswith("BROKER_VALIDATOR_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr("broker_validator.config.load_dotenv", lambda *args, **kwargs: False)
    yield
