"""
Test fixtures for workout-sheet-api.

Provides a FastAPI client, a deterministic id generator and sample sheets so
tests run offline without Supabase.
"""

import itertools
import sys
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import workout_sheet_api...`
for p in {ROOT, SRC}:
    p_str = str(p)
    if p_str not in sys.path:
        sys.path.insert(0, p_str)

from workout_sheet_api.main import app
from workout_sheet_api.models import Exercise, WorkoutSheet


# ---------------------------------------------------------------------------
# Core Test Client
# ---------------------------------------------------------------------------


@pytest.fixture
def client() -> TestClient:
    """Per-test FastAPI TestClient."""
    return TestClient(app)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def id_generator() -> Callable[[], str]:
    """Deterministic ids: ex-1, ex-2, ..."""
    counter = itertools.count(1)
    return lambda: f"ex-{next(counter)}"


# ---------------------------------------------------------------------------
# Sample Data Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_exercises():
    return [
        Exercise(
            id="1",
            name="Supino reto",
            series=4,
            repetitions="10-12",
            rest="60s",
            video_link="https://youtu.be/abcdefghijk",
            notes="controlar a descida",
            category="A",
        ),
        Exercise(id="2", name="Crucifixo", series=3, repetitions="12", category="A"),
        Exercise(id="3", name="Agachamento", series=4, repetitions="8", rest="90s", category="B"),
    ]


@pytest.fixture
def sample_sheet(sample_exercises) -> WorkoutSheet:
    return WorkoutSheet(
        student_name="João da Silva",
        gender="masculino",
        weekly_frequency=3,
        level="intermediario",
        sub_level=2,
        exercises=sample_exercises,
    )


# ---------------------------------------------------------------------------
# Environment Variables
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Keep tests away from a real Supabase project."""
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "test-supabase-key")
