"""
Global pytest fixtures for the k-means|| tests.

- Provides deterministic seeding across Python, NumPy, and PyTorch.
- Forces single-threaded torch to stabilize timings and reduce flakiness.
- Standardizes on CPU for all tests.
"""

from __future__ import annotations

import os
import random
import sys
from typing import Generator
from pathlib import Path

import numpy as np
import pytest
import torch

# Headless plotting for the visualization tests
os.environ.setdefault("MPLBACKEND", "Agg")

# Add the project's src directory to the Python path so tests can import the code
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))
# Make tests/ importable for the shared helpers (data_gen, utils)
sys.path.insert(0, str(Path(__file__).resolve().parent))


def _get_seed() -> int:
    """Resolve the test seed from env or default."""
    env = os.getenv("TEST_RANDOM_SEED", "1337")
    try:
        return int(env)
    except ValueError:
        return 1337


@pytest.fixture(scope="session", autouse=True)
def seed_all() -> None:
    """
    Seed Python, NumPy, and PyTorch RNGs once per session.

    Seed value comes from TEST_RANDOM_SEED (default 1337).
    """
    seed = _get_seed()

    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture(scope="session", autouse=True)
def set_torch_threads() -> None:
    """
    Reduce PyTorch to a single thread for stability and consistent timing.
    """
    torch.set_num_threads(1)


@pytest.fixture(scope="function")
def rng(seed_all: None) -> Generator[np.random.Generator, None, None]:
    """
    Per-test NumPy Generator seeded from the session seed.

    Each test receives a fresh Generator (independent streams across tests,
    reproducible within a test).
    """
    gen = np.random.default_rng(_get_seed())
    yield gen


@pytest.fixture(scope="session")
def torch_device() -> torch.device:
    """Standard device for tests, pinned to CPU."""
    return torch.device("cpu")


@pytest.fixture(autouse=True)
def close_figures():
    """Close any matplotlib figures a test opened."""
    yield
    import matplotlib.pyplot as plt
    plt.close("all")
