# tests/conftest.py
# Ensure project root is importable as a module during pytest runs
import pathlib
import sys

import numpy as np
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pyroifeat.engine.roi_store import RoiStore  # noqa: E402


@pytest.fixture
def example_pixels():
    return np.array([[5, 5, 5],
                     [5, 9, 5],
                     [5, 5, 5]], dtype=np.uint16)


@pytest.fixture
def random_store():
    """Forty ROIs of random shape and intensity; every tenth one is flat."""
    rng = np.random.default_rng(2024)
    store = RoiStore()
    for label in range(1, 41):
        h, w = rng.integers(3, 12, size=2)
        pixels = rng.integers(0, 6, size=(h, w))
        pixels[h // 2, w // 2] = max(int(pixels[h // 2, w // 2]), 1)
        if label % 10 == 0:
            pixels = np.where(pixels > 0, 7, 0)
        store.add(label, pixels)
    return store
