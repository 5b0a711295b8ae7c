"""Shared test fixtures for cognitive report tests."""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any

import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from cogreport.core.blocks.loader import DEFAULT_BLOCK_DIR, load_block_directory  # noqa: E402
from cogreport.core.blocks.registry import BlockLibrary  # noqa: E402


# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COG_BLOCKS_DIR", "")
    monkeypatch.delenv("COG_DEFAULT_SEED", raising=False)
    monkeypatch.setenv("COG_DEFAULT_AUDIENCE", "patient")


# ---------------------------------------------------------------------------
# Block library
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def library() -> BlockLibrary:
    """The packaged attention block library, loaded once per session."""
    return load_block_directory(DEFAULT_BLOCK_DIR)


# ---------------------------------------------------------------------------
# Sample assessments
# ---------------------------------------------------------------------------

# 24 CPT reaction times drifting slowly upwards with trial-to-trial jitter
SAMPLE_REACTION_TIMES = [
    412, 455, 398, 472, 430, 501, 445, 488, 420, 530, 462, 515,
    441, 560, 478, 523, 490, 575, 468, 540, 505, 590, 482, 610,
]

_SAMPLE_ASSESSMENT: dict[str, Any] = {
    "cpt": {
        "hitRate": 0.88,
        "commissionErrors": 9,
        "totalTrials": 100,
        "meanRT": 520,
        "rtStandardDeviation": 145,
        "reactionTimes": SAMPLE_REACTION_TIMES,
        "hits": 44,
        "misses": 6,
        "falseAlarms": 9,
        "correctRejections": 141,
    },
    "goNoGo": {
        "noGoAccuracy": 0.72,
        "goAccuracy": 0.94,
        "meanRT": 430,
        "commissionErrors": 14,
    },
    "nback": {
        "accuracy": 0.68,
        "level": 2,
        "oneBackAccuracy": 0.9,
        "twoBackAccuracy": 0.62,
    },
    "flanker": {
        "congruentAccuracy": 0.96,
        "incongruentAccuracy": 0.84,
        "congruentRT": 410,
        "incongruentRT": 505,
    },
    "trail": {"partATime": 30, "partBTime": 70},
    "dsm5": {
        "inattentionScore": 24,
        "hyperactivityScore": 14,
        "totalScore": 38,
        "inattentionCount": 7,
        "hyperactivityCount": 3,
        "meetsInattentionCriteria": True,
        "meetsHyperactivityCriteria": False,
        "meetsSupportingCriteria": True,
        "presentation": "Predominantly Inattentive Presentation",
        "riskLevel": "moderate",
    },
    "user": {"name": "Alex", "age": 29},
    "device": {"validityScore": 92, "latencyCorrected": True},
}


def make_assessment(**overrides: Any) -> dict[str, Any]:
    """Deep copy of the sample assessment with top-level keys replaced.

    Pass ``key=None`` to drop a task entirely.
    """
    data = copy.deepcopy(_SAMPLE_ASSESSMENT)
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return data


@pytest.fixture
def sample_assessment() -> dict[str, Any]:
    """A complete five-task assessment with questionnaire and RT series."""
    return make_assessment()


@pytest.fixture
def empty_assessment() -> dict[str, Any]:
    """No tasks at all: every value falls back to its documented default."""
    return {}


@pytest.fixture
def assessment_factory():
    """Return :func:`make_assessment` for tests that vary one task."""
    return make_assessment
