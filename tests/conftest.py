"""Shared pytest setup: tracing off, bundled rule sets."""
import os
from pathlib import Path

import pytest

# Must be set before opik reads its config on the first traced call
os.environ.setdefault("OPIK_TRACK_DISABLE", "true")

ROOT = Path(__file__).resolve().parent.parent
RULES_PATH = ROOT / "rules" / "clients.yaml"


@pytest.fixture
def rules_path() -> Path:
    return RULES_PATH
