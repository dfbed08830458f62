import json
import sys
from pathlib import Path

import pytest


# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def load_fixture(name: str):
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


@pytest.fixture()
def legacy_timeline_payload():
    return load_fixture("legacy_timeline.json")


@pytest.fixture()
def included_media_payload():
    return load_fixture("included_media.json")


@pytest.fixture()
def cache_path(tmp_path) -> Path:
    return tmp_path / "videos.json"
