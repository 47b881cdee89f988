"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop DOCMAPPER_* variables and run each test away from any .env file."""
    for key in list(os.environ):
        if key.upper().startswith("DOCMAPPER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings():
    from docmapper.config import Settings

    return Settings()
