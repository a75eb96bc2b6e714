"""
Test configuration and fixtures for PhospheneSim.
"""
import os
import sys
from pathlib import Path

import pytest
import torch

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OMP_NUM_THREADS", "1")
os.environ.setdefault("MKL_NUM_THREADS", "1")

try:
    torch.set_num_threads(1)
except RuntimeError:  # pragma: no cover - thread count already fixed by backend
    pass

from phosphenesim.config.schema import SimulatorConfig  # noqa: E402
from phosphenesim.core.fields import FieldBuffers  # noqa: E402


@pytest.fixture
def small_config():
    """Small stereo configuration that runs quickly on CPU."""
    return SimulatorConfig.from_dict({
        "display": {"resolution": [32, 24]},
        "layout": {"type": "grid", "rows": 4, "cols": 4, "size": 0.02, "margin": 0.1},
        "stimulus": {"type": "gaussian", "frames": 4, "sigma": 0.2},
    })


@pytest.fixture
def small_fields():
    """Empty 32x32 stereo field buffers."""
    return FieldBuffers((32, 32))


@pytest.fixture
def config_file(tmp_path, small_config):
    """Small configuration written to a YAML file."""
    path = tmp_path / "config.yml"
    path.write_text(small_config.to_yaml(), encoding="utf-8")
    return path
