"""Registration of the built-in PhospheneSim components.

Example:
    >>> from phosphenesim.register_components import register_all
    >>> register_all()
    >>> from phosphenesim.registry import LAYOUT_REGISTRY
    >>> positions, sizes = LAYOUT_REGISTRY.create("grid", rows=8, cols=8)
"""

from phosphenesim.registry import (
    FILTER_REGISTRY,
    LAYOUT_REGISTRY,
    SPREAD_REGISTRY,
    STIMULUS_REGISTRY,
)

# Temporal filters
from phosphenesim.filters.habituation import HabituationFilter

# Layouts
from phosphenesim.core.layout import explicit_layout, grid_layout, random_layout

# Spreading backends
from phosphenesim.core.spreader import spread_reference, spread_vectorized

# Stimuli
from phosphenesim.stimuli.gaussian import gaussian_stimulation
from phosphenesim.stimuli.moving import flash_stimulation, moving_bar_stimulation


def register_all() -> None:
    """Register all built-in components with their registries.

    Safe to call repeatedly; registration is idempotent.
    """
    FILTER_REGISTRY.register("habituation", HabituationFilter)

    LAYOUT_REGISTRY.register("grid", grid_layout)
    LAYOUT_REGISTRY.register("random", random_layout)
    LAYOUT_REGISTRY.register("explicit", explicit_layout)

    STIMULUS_REGISTRY.register("gaussian", gaussian_stimulation)
    STIMULUS_REGISTRY.register("moving_bar", moving_bar_stimulation)
    STIMULUS_REGISTRY.register("flash", flash_stimulation)

    SPREAD_REGISTRY.register("vectorized", spread_vectorized)
    SPREAD_REGISTRY.register("reference", spread_reference)
