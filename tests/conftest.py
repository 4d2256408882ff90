import numpy as np
import pytest

from synthetic import create_synthetic_window_image


@pytest.fixture
def window_image() -> np.ndarray:
    """800x600 image with one window spanning (100, 100)-(700, 500)."""
    return create_synthetic_window_image()
