"""Frame-by-frame phosphene vision simulator.

The simulator owns the phosphene store and the field buffers and runs the
per-frame protocol:

1. FieldReset - activation field to (0, 0), render field to (0, 0, 0, 1);
2. ActivationUpdater - every phosphene, left eye then right eye;
3. ActivationSpreader - every active texel of both eyes;
4. (optional) DebugExport of the render field.

Each phase completes before the next starts. The store persists between
frames; the fields are rebuilt every frame.

Example:
    >>> from phosphenesim.config.schema import SimulatorConfig
    >>> from phosphenesim.core.simulator import PhospheneSimulator
    >>> sim = PhospheneSimulator(SimulatorConfig())
    >>> frames = sim.generate_stimulus()
    >>> render = sim.step(frames[0])
    >>> render.shape
    torch.Size([2, 256, 256, 4])
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
import warnings

import torch
from tqdm import tqdm

from phosphenesim.config.schema import ConfigurationError, SimulatorConfig
from phosphenesim.config.yaml_utils import load_config_file
from phosphenesim.core.fields import FieldBuffers
from phosphenesim.core.layout import explicit_layout
from phosphenesim.core.phosphenes import PhospheneStore
from phosphenesim.core.sampling import GazeState, StimulationSampler
from phosphenesim.core.spreader import ActivationSpreader, max_radius
from phosphenesim.core.updater import ActivationUpdater
from phosphenesim.register_components import register_all
from phosphenesim.registry import (
    FILTER_REGISTRY,
    LAYOUT_REGISTRY,
    SPREAD_REGISTRY,
    STIMULUS_REGISTRY,
)

register_all()


class PhospheneSimulator:
    """Stereo phosphene simulation driven by per-frame stimulation images.

    Attributes:
        config: Validated :class:`SimulatorConfig`.
        device: Torch device of all state.
        store: Persistent phosphene state.
        fields: Activation and render fields.
        gaze: Gaze state, updatable between frames.
        habituation: Temporal filter.
        updater: Activation updater.
        spreader: Activation spreader.
        frame_count: Frames simulated since construction or last reset.
    """

    def __init__(
        self,
        config: SimulatorConfig,
        positions: Optional[torch.Tensor] = None,
        sizes: Optional[torch.Tensor] = None,
        device: Optional[torch.device | str] = None,
    ) -> None:
        """Build the simulator.

        Args:
            config: Simulator configuration.
            positions: Optional ``[N, 2]`` layout overriding ``config.layout``.
            sizes: Radii matching ``positions``.
            device: Overrides ``config.display.device``.

        Raises:
            ConfigurationError: If the configuration is unusable.
        """
        config.validate()
        self.config = config
        self.device = torch.device(device or config.display.device)
        self.resolution = tuple(int(v) for v in config.display.resolution)

        positions, sizes = self._build_layout(positions, sizes)
        self.store = PhospheneStore(positions, sizes, device=self.device)
        self.fields = FieldBuffers(self.resolution, device=self.device)
        self.gaze = GazeState.from_config(config.gaze, device=self.device)

        self.habituation = FILTER_REGISTRY.create("habituation", config=config.habituation)
        sampler = StimulationSampler(self.resolution, policy=config.display.sampling_policy)
        self.updater = ActivationUpdater(
            self.habituation, sampler, output_policy=config.display.output_policy
        )

        if not SPREAD_REGISTRY.is_registered(config.display.spread_backend):
            raise ConfigurationError(
                f"Unknown spread backend '{config.display.spread_backend}'. "
                f"Available: {SPREAD_REGISTRY.list_registered()}"
            )
        self.spreader = ActivationSpreader(
            backend=config.display.spread_backend,
            policy=config.display.spread_policy,
        )
        self.frame_count = 0
        self._check_footprint()

    def _build_layout(self, positions, sizes):
        if positions is not None or sizes is not None:
            if positions is None or sizes is None:
                raise ConfigurationError("positions and sizes must be given together")
            try:
                return explicit_layout(positions, sizes, device=self.device)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        layout = self.config.layout
        if not LAYOUT_REGISTRY.is_registered(layout.type):
            raise ConfigurationError(
                f"Unknown layout type '{layout.type}'. "
                f"Available: {LAYOUT_REGISTRY.list_registered()}"
            )
        try:
            return LAYOUT_REGISTRY.create(layout.type, device=self.device, **layout.layout_kwargs())
        except ValueError as e:
            raise ConfigurationError(f"Invalid {layout.type} layout: {e}") from e

    def _check_footprint(self) -> None:
        width, height = self.resolution
        widest = max_radius(self.store.sizes.max().item(), width)
        if widest > max(width, height):
            warnings.warn(
                f"Largest phosphene spreads over {widest:.0f} px, wider than the "
                f"{width}x{height} screen; spreading will be slow",
                UserWarning,
            )

    @classmethod
    def from_config(cls, config: SimulatorConfig | Dict[str, Any], **kwargs) -> "PhospheneSimulator":
        """Build from a :class:`SimulatorConfig` or a plain dict."""
        if not isinstance(config, SimulatorConfig):
            config = SimulatorConfig.from_dict(config)
        return cls(config, **kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path, **kwargs) -> "PhospheneSimulator":
        """Build from a YAML config file (duplicate keys rejected)."""
        return cls.from_config(load_config_file(path), **kwargs)

    def set_gaze(self, gaze_position=None, eye_center=None) -> None:
        """Update the live gaze and/or eye-centre reference (``[2, 2]`` each)."""
        self.gaze.update(gaze_position=gaze_position, eye_center=eye_center)

    def set_gaze_modes(
        self,
        gaze_assisted: Optional[bool] = None,
        gaze_locked: Optional[bool] = None,
    ) -> None:
        if gaze_assisted is not None:
            self.gaze.gaze_assisted = bool(gaze_assisted)
        if gaze_locked is not None:
            self.gaze.gaze_locked = bool(gaze_locked)

    def set_habituation(self, **params: float) -> None:
        """Change temporal parameters between frames.

        Decays outside ``[0, 1)`` are applied with the same warning as at
        construction.

        Raises:
            ValueError: On an unknown parameter name.
        """
        known = self.habituation.to_dict()
        unknown = set(params) - set(known)
        if unknown:
            raise ValueError(f"Unknown habituation parameters: {sorted(unknown)}")
        for name, value in params.items():
            setattr(self.habituation, name, float(value))
            setattr(self.config.habituation, name, float(value))
        if {"intensity_decay", "trace_decay"} & set(params):
            self.config.habituation.check_decays()

    def reset_state(self) -> None:
        """Forget all activation and trace history."""
        self.store.reset_state()
        self.fields.reset()
        self.frame_count = 0

    def step(self, stimulation: torch.Tensor, gaze_position=None) -> torch.Tensor:
        """Simulate one frame.

        Args:
            stimulation: ``[2, H, W]`` or ``[2, H, W, C]`` stereo stimulation.
            gaze_position: Optional ``[2, 2]`` gaze for this frame.

        Returns:
            The render field ``[2, H, W, 4]``. The buffer is reused by the
            next call; clone it to keep it.
        """
        if gaze_position is not None:
            self.gaze.update(gaze_position=gaze_position)
        stimulation = torch.as_tensor(stimulation, device=self.device).float()

        self.fields.reset()
        self.updater.update(self.store, self.fields, self.gaze, stimulation)
        self.spreader(self.fields)
        self.frame_count += 1
        return self.fields.render_field

    def run(
        self,
        stimulation: torch.Tensor,
        gaze_trajectory: Optional[torch.Tensor] = None,
        progress: bool = False,
    ) -> Dict[str, torch.Tensor]:
        """Simulate a stimulation sequence frame by frame.

        Args:
            stimulation: ``[T, 2, H, W]`` or ``[T, 2, H, W, C]``.
            gaze_trajectory: Optional ``[T, 2, 2]`` gaze per frame.
            progress: Show a tqdm progress bar.

        Returns:
            Dict with ``render`` ``[T, 2, H, W]`` (grey level), ``activation``
            and ``trace`` ``[T, N, 2]``.

        Raises:
            ValueError: If the gaze trajectory length differs from ``T``.
        """
        frames = stimulation.shape[0]
        if gaze_trajectory is not None and gaze_trajectory.shape[0] != frames:
            raise ValueError(
                f"gaze_trajectory has {gaze_trajectory.shape[0]} frames, "
                f"stimulation has {frames}"
            )

        width, height = self.resolution
        render = torch.zeros(frames, 2, height, width, device=self.device)
        activation = torch.zeros(frames, len(self.store), 2, device=self.device)
        trace = torch.zeros_like(activation)

        for t in tqdm(range(frames), desc="Simulating", unit="frame", disable=not progress):
            gaze = gaze_trajectory[t] if gaze_trajectory is not None else None
            self.step(stimulation[t], gaze_position=gaze)
            render[t] = self.fields.intensity()
            activation[t] = self.store.activation
            trace[t] = self.store.trace

        return {"render": render, "activation": activation, "trace": trace}

    def generate_stimulus(self) -> torch.Tensor:
        """Synthetic ``[T, 2, H, W]`` stimulation described by ``config.stimulus``.

        Raises:
            ConfigurationError: If the stimulus type is not registered.
        """
        stimulus = self.config.stimulus
        if not STIMULUS_REGISTRY.is_registered(stimulus.type):
            raise ConfigurationError(
                f"Unknown stimulus type '{stimulus.type}'. "
                f"Available: {STIMULUS_REGISTRY.list_registered()}"
            )
        return STIMULUS_REGISTRY.create(
            stimulus.type,
            resolution=self.resolution,
            device=self.device,
            **stimulus.stimulus_kwargs(),
        )

    def debug_export(self, eye: int = 0) -> torch.Tensor:
        """Linear ``[H*W, 4]`` copy of one eye's render field."""
        return self.fields.debug_export(eye)

    def get_simulator_info(self) -> Dict[str, Any]:
        """Summary of the simulator for CLI output and result files."""
        width, height = self.resolution
        return {
            "config": self.config.to_dict(),
            "num_phosphenes": len(self.store),
            "resolution": [width, height],
            "device": str(self.device),
            "spread_backend": self.spreader.backend,
            "max_spread_radius_px": max_radius(self.store.sizes.max().item(), width),
            "frame_count": self.frame_count,
        }
