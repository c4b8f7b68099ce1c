"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add project root to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide settings built from a controlled environment."""
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("WEIGHT_TOLERANCE", "0.01")
    
    from signalcore.config import Settings
    return Settings(_env_file=None)


@pytest.fixture
def rng():
    """Provide a seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def default_weights():
    """Provide the default engine weights."""
    from signalcore.rules.strategy import EngineWeights
    return EngineWeights(
        sentiment=0.35,
        trend=0.25,
        fundamental=0.15,
        event_risk=0.15,
        liquidity=0.10,
    )


@pytest.fixture
def score_context():
    """Provide a score context with a final score and engine details."""
    return {
        "final_score": 0.6,
        "metadata": {
            "engine_details": {
                "sentiment": {"score": 0.4},
                "trend": {"score": 0.2},
            },
        },
    }
