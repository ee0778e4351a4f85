import numpy as np
import pytest

from Exp_Curves.developer import clear_log, reset_debug_gate, start_session
from Exp_Curves.encoding import EncoderConfig


@pytest.fixture(autouse=True)
def clean_logger():
    """Every test starts with logging disabled and an empty buffer."""
    reset_debug_gate()
    start_session()
    yield
    reset_debug_gate()
    clear_log()


@pytest.fixture
def small_config():
    """Short windows and two candidates keep the search cheap."""
    return EncoderConfig(degree_candidates=(4, 8), bucket_length=32)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
