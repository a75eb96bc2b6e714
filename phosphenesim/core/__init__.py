"""Core simulation kernels: phosphene state, sampling, update, spreading."""

from .phosphenes import NUM_EYES, PhospheneStore
from .layout import explicit_layout, grid_layout, random_layout
from .fields import FieldBuffers
from .sampling import GazeState, StimulationSampler, effective_position, to_pixel
from .updater import ActivationUpdater
from .spreader import (
    ACTIVATION_THRESHOLD,
    SIZE_THRESHOLD,
    ActivationSpreader,
    gaussian,
    iter_spread_offsets,
    max_radius,
    spread_reference,
    spread_vectorized,
)
from .simulator import PhospheneSimulator

__all__ = [
    "NUM_EYES",
    "PhospheneStore",
    "explicit_layout",
    "grid_layout",
    "random_layout",
    "FieldBuffers",
    "GazeState",
    "StimulationSampler",
    "effective_position",
    "to_pixel",
    "ActivationUpdater",
    "ACTIVATION_THRESHOLD",
    "SIZE_THRESHOLD",
    "ActivationSpreader",
    "gaussian",
    "iter_spread_offsets",
    "max_radius",
    "spread_reference",
    "spread_vectorized",
    "PhospheneSimulator",
]
