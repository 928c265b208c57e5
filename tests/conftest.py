import tracemalloc

import numpy as np
import pytest


@pytest.fixture
def large_image():
    rng = np.random.default_rng(2024)
    return rng.integers(0, 65536, (1000, 1000, 3), dtype=np.uint16)


@pytest.fixture
def peak_memory():
    """Run a callable under tracemalloc and return its peak allocation in bytes."""
    def measure(fn, *args, **kwargs):
        tracemalloc.start()
        try:
            fn(*args, **kwargs)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        return peak
    return measure
