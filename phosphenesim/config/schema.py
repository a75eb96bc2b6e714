"""Canonical configuration schema for PhospheneSim.

One YAML document describes a complete simulation: the habituation
parameters, the gaze modes, the display raster, the phosphene layout and
(for offline runs) the synthetic stimulation. Both the Python API and the
CLI consume this format, so ``to_yaml`` -> ``from_yaml`` reproduces the
same simulator.

Example:
    >>> from phosphenesim.config.schema import SimulatorConfig
    >>> config = SimulatorConfig.from_yaml(yaml_str)
    >>> config.validate()
    >>> config.display.resolution
    [256, 256]
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import warnings

import yaml

COORDINATE_POLICIES = ("clamp", "wrap", "discard")
SPREAD_POLICIES = ("discard", "clamp")


class ConfigurationError(ValueError):
    """Raised when a configuration cannot produce a working simulator."""


def _filter_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k in cls.__dataclass_fields__}


@dataclass
class HabituationConfig:
    """Temporal parameters of the activation/trace filter.

    Attributes:
        input_effect: Gain from stimulation (minus trace) to activation.
        intensity_decay: Fraction of activation carried to the next frame,
            expected in ``[0, 1)``.
        trace_increase: Gain from stimulation to the habituation trace.
        trace_decay: Fraction of trace carried to the next frame, expected
            in ``[0, 1)``.
    """
    input_effect: float = 0.75
    intensity_decay: float = 0.05
    trace_increase: float = 0.1
    trace_decay: float = 0.9

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HabituationConfig:
        return cls(**_filter_fields(cls, data))

    def check_decays(self) -> None:
        """Warn when a decay lies outside ``[0, 1)``; such values stay legal."""
        for name in ("intensity_decay", "trace_decay"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                warnings.warn(
                    f"habituation.{name}={value} is outside [0, 1); "
                    "activation or trace may grow without bound",
                    UserWarning,
                )


@dataclass
class GazeConfig:
    """Gaze state and gaze-following modes.

    ``gaze_assisted`` selects the live gaze (instead of the eye centre) as the
    reference for *sampling* the stimulation; ``gaze_locked`` does the same
    for the *output* position in the activation field.

    Attributes:
        gaze_assisted: Sampling position follows gaze.
        gaze_locked: Rendered position follows gaze.
        gaze_position: ``[[x, y], [x, y]]`` normalized gaze per eye.
        eye_center: ``[[x, y], [x, y]]`` normalized fixed reference per eye.
    """
    gaze_assisted: bool = False
    gaze_locked: bool = False
    gaze_position: List[List[float]] = field(
        default_factory=lambda: [[0.5, 0.5], [0.5, 0.5]]
    )
    eye_center: List[List[float]] = field(
        default_factory=lambda: [[0.5, 0.5], [0.5, 0.5]]
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GazeConfig:
        return cls(**_filter_fields(cls, data))


@dataclass
class DisplayConfig:
    """Output raster and numerical execution settings.

    Attributes:
        resolution: ``[width, height]`` of the activation and render fields
            (and of the stimulation images) in pixels.
        sampling_policy: Out-of-range handling when sampling stimulation
            (clamp, wrap, discard).
        output_policy: Out-of-range handling when writing the activation
            field (clamp, wrap, discard).
        spread_policy: Handling of Gaussian contributions that fall off the
            render field (discard, clamp).
        spread_backend: Registered spreading backend (vectorized, reference).
        device: Torch device for all tensors (cpu, cuda, mps).
    """
    resolution: List[int] = field(default_factory=lambda: [256, 256])
    sampling_policy: str = "clamp"
    output_policy: str = "clamp"
    spread_policy: str = "discard"
    spread_backend: str = "vectorized"
    device: str = "cpu"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DisplayConfig:
        return cls(**_filter_fields(cls, data))


@dataclass
class LayoutConfig:
    """Phosphene layout supplied to the simulator.

    Attributes:
        type: Registered layout name (grid, random, explicit).
        rows: Rows of a grid layout.
        cols: Columns of a grid layout.
        count: Number of phosphenes of a random layout.
        size: Nominal phosphene radius (normalized units).
        size_jitter: Relative uniform jitter applied to ``size``.
        margin: Border kept free of phosphene centres (normalized units).
        seed: Seed of the per-layout random generator.
        positions: Explicit ``[[x, y], ...]`` list (explicit layout).
        sizes: Explicit radii matching ``positions`` (explicit layout).
    """
    type: str = "grid"
    rows: int = 16
    cols: int = 16
    count: int = 256
    size: float = 0.01
    size_jitter: float = 0.0
    margin: float = 0.05
    seed: Optional[int] = None
    positions: Optional[List[List[float]]] = None
    sizes: Optional[List[float]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        return {k: v for k, v in result.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LayoutConfig:
        return cls(**_filter_fields(cls, data))

    def layout_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for the registered layout factory."""
        if self.type == "grid":
            return {
                "rows": self.rows,
                "cols": self.cols,
                "size": self.size,
                "margin": self.margin,
                "size_jitter": self.size_jitter,
                "seed": self.seed,
            }
        if self.type == "random":
            return {
                "count": self.count,
                "size": self.size,
                "margin": self.margin,
                "size_jitter": self.size_jitter,
                "seed": self.seed,
            }
        return {"positions": self.positions, "sizes": self.sizes}


@dataclass
class StimulusConfig:
    """Synthetic stimulation used for offline runs.

    Attributes:
        type: Registered stimulus name (gaussian, moving_bar, flash).
        frames: Number of frames to generate.
        amplitude: Peak stimulation value.
        center: ``[x, y]`` normalized centre (gaussian, flash).
        sigma: Gaussian spread in normalized units.
        width: Bar width in normalized units (moving_bar).
        speed: Bar displacement per frame in normalized units.
        orientation_deg: Bar orientation in degrees (0 = vertical bar).
        on_frames: Frames the flash stays on.
        off_frames: Frames the flash stays off.
        disparity: Horizontal shift between left and right eye images.
    """
    type: str = "gaussian"
    frames: int = 30
    amplitude: float = 1.0
    center: List[float] = field(default_factory=lambda: [0.5, 0.5])
    sigma: float = 0.1
    width: float = 0.05
    speed: float = 0.02
    orientation_deg: float = 0.0
    on_frames: int = 10
    off_frames: int = 10
    disparity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StimulusConfig:
        return cls(**_filter_fields(cls, data))

    def stimulus_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for the registered stimulus generator."""
        kwargs: Dict[str, Any] = {
            "frames": self.frames,
            "amplitude": self.amplitude,
            "disparity": self.disparity,
        }
        if self.type == "moving_bar":
            kwargs.update(
                width=self.width,
                speed=self.speed,
                orientation_deg=self.orientation_deg,
            )
        else:
            kwargs.update(center=list(self.center), sigma=self.sigma)
            if self.type == "flash":
                kwargs.update(on_frames=self.on_frames, off_frames=self.off_frames)
        return kwargs


@dataclass
class SimulatorConfig:
    """Top-level configuration of a phosphene simulation.

    Attributes:
        habituation: Temporal filter parameters.
        gaze: Gaze state and modes.
        display: Raster and execution settings.
        layout: Phosphene layout.
        stimulus: Synthetic stimulation for offline runs.
        metadata: Free-form metadata (name, version, notes).
    """
    habituation: HabituationConfig = field(default_factory=HabituationConfig)
    gaze: GazeConfig = field(default_factory=GazeConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    stimulus: StimulusConfig = field(default_factory=StimulusConfig)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dict for YAML serialization."""
        return {
            "metadata": self.metadata,
            "habituation": self.habituation.to_dict(),
            "gaze": self.gaze.to_dict(),
            "display": self.display.to_dict(),
            "layout": self.layout.to_dict(),
            "stimulus": self.stimulus.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SimulatorConfig:
        """Create from dict (e.g. loaded YAML).

        Missing sections fall back to their defaults.
        """
        return cls(
            habituation=HabituationConfig.from_dict(data.get("habituation") or {}),
            gaze=GazeConfig.from_dict(data.get("gaze") or {}),
            display=DisplayConfig.from_dict(data.get("display") or {}),
            layout=LayoutConfig.from_dict(data.get("layout") or {}),
            stimulus=StimulusConfig.from_dict(data.get("stimulus") or {}),
            metadata=data.get("metadata") or {},
        )

    def to_yaml(self) -> str:
        return yaml.dump(
            self.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

    @classmethod
    def from_yaml(cls, yaml_str: str) -> SimulatorConfig:
        """Load from a YAML string.

        Raises:
            ConfigurationError: If the document is not a mapping.
        """
        data = yaml.safe_load(yaml_str)
        if not isinstance(data, dict):
            raise ConfigurationError("YAML did not produce a dict")
        return cls.from_dict(data)

    def validate(self) -> None:
        """Check that the configuration can drive a simulator.

        Unusable values raise; legal but unusual ones (decays outside
        ``[0, 1)``) only warn.

        Raises:
            ConfigurationError: On the first unusable value found.
        """
        resolution = self.display.resolution
        if len(resolution) != 2 or any(int(v) != v or v <= 0 for v in resolution):
            raise ConfigurationError(
                f"display.resolution must be two positive integers [width, height], "
                f"got {resolution}"
            )

        for name in ("sampling_policy", "output_policy"):
            policy = getattr(self.display, name)
            if policy not in COORDINATE_POLICIES:
                raise ConfigurationError(
                    f"display.{name} must be one of {COORDINATE_POLICIES}, got '{policy}'"
                )
        if self.display.spread_policy not in SPREAD_POLICIES:
            raise ConfigurationError(
                f"display.spread_policy must be one of {SPREAD_POLICIES}, "
                f"got '{self.display.spread_policy}'"
            )

        for name in ("gaze_position", "eye_center"):
            value = getattr(self.gaze, name)
            if len(value) != 2 or any(len(eye) != 2 for eye in value):
                raise ConfigurationError(
                    f"gaze.{name} must be [[x, y], [x, y]] (one point per eye), got {value}"
                )

        self.habituation.check_decays()

        if self.stimulus.frames <= 0:
            raise ConfigurationError(
                f"stimulus.frames must be positive, got {self.stimulus.frames}"
            )

        if self.layout.type == "explicit":
            positions = self.layout.positions or []
            sizes = self.layout.sizes or []
            if not positions:
                raise ConfigurationError("explicit layout requires 'positions'")
            if len(positions) != len(sizes):
                raise ConfigurationError(
                    f"explicit layout has {len(positions)} positions but {len(sizes)} sizes"
                )
