"""Shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backlogr import Session, TaigaClient

BASE_URL = "http://test"


@pytest.fixture
def client():
    """A TaigaClient that is already logged in."""
    client = TaigaClient(base_url=BASE_URL)
    client.session = Session(auth_token="token", base_url=BASE_URL)
    yield client
    client.close()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep TAIGA_* variables and stray config files out of every test."""
    for var in ("TAIGA_USERNAME", "TAIGA_PASSWORD", "TAIGA_PROJECT_NAME", "TAIGA_API_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def make_story(ref: int, status_name: str = "New", story_id: int | None = None) -> dict:
    """A /userstories list entry."""
    return {
        "id": story_id if story_id is not None else 1000 + ref,
        "ref": ref,
        "subject": f"Story {ref}",
        "status": 1,
        "created_date": "2025-05-01T10:00:00Z",
        "status_extra_info": {"name": status_name, "color": "#999999", "is_closed": False},
    }
