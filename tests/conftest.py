from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Import the local src tree, not an installed splunk-cli.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

SPLUNK_ENV_VARS = (
    "SPLUNK_HOST",
    "SPLUNK_TOKEN",
    "SPLUNK_USER",
    "SPLUNK_PASSWORD",
    "SPLUNK_APP",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove SPLUNK_* variables so the developer's shell does not leak into tests."""
    for name in SPLUNK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
