"""Synthetic stimulation sequences for offline runs and tests.

Live use feeds camera-derived images instead; these generators stand in for
that upstream producer.

Example:
    >>> from phosphenesim.stimuli import flash_stimulation
    >>> frames = flash_stimulation((128, 128), frames=40, on_frames=20, off_frames=20)
"""

from phosphenesim.stimuli.gaussian import (
    gaussian_stimulation,
    gaussian_stimulus,
    screen_grid,
    stereo_pair,
)
from phosphenesim.stimuli.moving import flash_stimulation, moving_bar_stimulation

__all__ = [
    "gaussian_stimulation",
    "gaussian_stimulus",
    "screen_grid",
    "stereo_pair",
    "flash_stimulation",
    "moving_bar_stimulation",
]
