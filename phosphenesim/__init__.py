"""PhospheneSim: real-time simulation of prosthetic phosphene vision.

A sparse layout of phosphenes, shared by both eyes, samples a live
stimulation image every frame. Each phosphene's brightness follows an
activation/trace habituation filter, and the sparse activations are rendered
into a continuous stereo image by an aspect-corrected Gaussian spread.

Key Components:
    - core: phosphene store, sampling, activation update, Gaussian spreading
    - filters: temporal habituation filter
    - stimuli: synthetic stimulation sequences
    - config: YAML configuration schema
    - cli: command-line interface for offline runs

Example:
    >>> from phosphenesim import PhospheneSimulator, SimulatorConfig
    >>> sim = PhospheneSimulator(SimulatorConfig())
    >>> result = sim.run(sim.generate_stimulus())
"""

__version__ = "0.1.0"
__author__ = "PhospheneSim Contributors"
__license__ = "MIT"

from phosphenesim.config.schema import ConfigurationError, SimulatorConfig
from phosphenesim.core.simulator import PhospheneSimulator
from phosphenesim.core.phosphenes import PhospheneStore
from phosphenesim.filters.habituation import HabituationFilter

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "ConfigurationError",
    "SimulatorConfig",
    "PhospheneSimulator",
    "PhospheneStore",
    "HabituationFilter",
]
