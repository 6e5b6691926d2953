"""
Pytest configuration.

This file adds the project root to the Python path so that tests can import
the api, domain, repositories, services and clients modules, and provides an
in-memory Supabase client in place of the real one.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fake_supabase import FakeSupabase  # noqa: E402
from repositories import client as client_module  # noqa: E402
from settings import Settings  # noqa: E402


@pytest.fixture
def fake_supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    fake = FakeSupabase()
    monkeypatch.setattr(client_module, "get_supabase", lambda: fake)
    return fake


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        supabase_url="https://example.supabase.co",
        supabase_key="service-key",
        kie_api_key="kie-key",
        kie_poll_interval_seconds=0.01,
        app_url="https://event.example.com",
        max_generations_per_lead=3,
        count_failed_generations=True,
        variant_count=1,
        generation_deadline_seconds=5.0,
        stale_after_seconds=600.0,
    )
