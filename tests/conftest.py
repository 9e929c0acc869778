"""
Test fixtures for class-plan-normalizer.

Provides sample plan texts, a sample candidate plan and a FastAPI TestClient.
Everything is offline and deterministic.
"""

import copy
import sys
from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import class_plan_normalizer...`
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from class_plan_normalizer.config import PipelineDefaults
from class_plan_normalizer.main import app
from class_plan_normalizer.models import NormalizedType, Plan

from factories import make_block, make_plan


# ---------------------------------------------------------------------------
# Core Test Client
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def api_client() -> TestClient:
    """Shared FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def defaults() -> PipelineDefaults:
    return PipelineDefaults()


# ---------------------------------------------------------------------------
# Sample inputs
# ---------------------------------------------------------------------------


SAMPLE_CLASS_TEXT = """Page 1
FITNESS CLASS PLAN
Instructor: Dana
3/14/24 Morning session

FIRST BLOCK — Warm-up
Duration: 5:00
• 60s | Jumping Jacks
• 60s | Arm Circles
• 60s | High Knees
• 60s | Hip Openers
• 60s | Inchworms

TABATA (4:00)
20s | Squat Jumps
10s | Rest
20s | Squat Jumps
10s | Rest
20s | Burpees
10s | Rest
20s | Burpees
10s | Rest

COOL-DOWN
Child's pose - 60s
Hamstring stretch - 60s
Breathing - 60s
2
"""

SCENARIO_ONE_TEXT = "WARMUP\n30s | Jumping Jacks\n\nCOOLDOWN\n30s | Stretch"


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_CLASS_TEXT


SAMPLE_CANDIDATE: Dict[str, Any] = {
    "version": "enhanced",
    "metadata": {
        "class_name": "Lunchtime HIIT",
        "duration_min": 10,
        "modality": "HIIT",
        "level": "Intermediate",
        "intensity_curve": "Build",
        "transition_policy": "manual",
        "avoid_list": ["jumping"],
        "equipment": ["mat"],
    },
    "blocks": [
        {
            "id": "warmup",
            "name": "Warm-up",
            "type": "Warm-up",
            "duration": "2:00",
            "duration_sec": 120,
            "timeline": ["60s | March in place", "60s | Arm circles"],
            "cues": ["Ease in"],
        },
        {
            "id": "main",
            "name": "Main Set",
            "type": "Tabata Variation",
            "duration": "6:00",
            "duration_sec": 360,
            "pattern": "40/20 x 6",
            "timeline": [
                "40s | Squats",
                "20s | Rest",
                "40s | Push-ups",
                "20s | Rest",
                "40s | Lunges",
                "20s | Rest",
                "40s | Plank",
                "20s | Rest",
                "40s | Mountain climbers",
                "20s | Rest",
                "40s | Skaters",
                "20s | Rest",
            ],
            "cues": [],
        },
        {
            "id": "cooldown",
            "name": "Cool-down",
            "type": "Cooldown",
            "duration": "2:00",
            "duration_sec": 120,
            "timeline": ["60s | Forward fold", "60s | Breathing"],
            "cues": ["Slow down"],
        },
    ],
    "time_audit": {"sum_min": 10, "buffer_min": 0},
}


@pytest.fixture
def sample_candidate() -> Dict[str, Any]:
    """Fresh deep copy so tests can tweak it freely."""
    return copy.deepcopy(SAMPLE_CANDIDATE)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@pytest.fixture
def long_plan() -> Plan:
    """An 11-minute plan with generous rests, for a 7-minute target."""
    return make_plan(
        make_block("warmup", NormalizedType.WARMUP, [(60, "March"), (60, "Arm circles")]),
        make_block(
            "main",
            NormalizedType.INTERVAL,
            [(60, "Squats"), (60, "Rest"), (60, "Push-ups"), (60, "Rest"), (60, "Lunges"), (60, "Rest")],
        ),
        make_block("cooldown", NormalizedType.COOLDOWN, [(60, "Stretch"), (60, "Breathe"), (60, "Fold")]),
        duration_min=7,
    )
