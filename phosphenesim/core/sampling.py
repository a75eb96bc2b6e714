"""Gaze-dependent coordinate mapping and stimulation sampling.

A phosphene's nominal position is expressed relative to the screen centre
and re-anchored either on the live gaze point or on a fixed eye-centre
reference::

    center = position - 0.5 + (gaze_position[eye] if follow_gaze else eye_center[eye])

The normalized centre is scaled by the screen resolution and truncated to an
integer pixel. Coordinates that leave the raster are handled by a policy:

* ``clamp``   - snap to the nearest edge texel (default);
* ``wrap``    - wrap around modulo the resolution;
* ``discard`` - mark the texel invalid (sampling reads 0, writes are skipped).
"""

from __future__ import annotations

from typing import Tuple

import torch

from phosphenesim.config.schema import COORDINATE_POLICIES, GazeConfig
from phosphenesim.core.phosphenes import NUM_EYES, _check_eye


class GazeState:
    """Per-eye gaze point, eye-centre reference and the two gaze modes.

    Attributes:
        gaze_assisted: Sampling follows gaze.
        gaze_locked: Output position follows gaze.
        gaze_position: ``[2, 2]`` normalized gaze per eye.
        eye_center: ``[2, 2]`` normalized eye-centre reference per eye.
    """

    def __init__(
        self,
        gaze_assisted: bool = False,
        gaze_locked: bool = False,
        gaze_position=((0.5, 0.5), (0.5, 0.5)),
        eye_center=((0.5, 0.5), (0.5, 0.5)),
        device: torch.device | str = "cpu",
    ) -> None:
        self.gaze_assisted = bool(gaze_assisted)
        self.gaze_locked = bool(gaze_locked)
        self.device = torch.device(device)
        self.gaze_position = _eye_pairs(gaze_position, "gaze_position", self.device)
        self.eye_center = _eye_pairs(eye_center, "eye_center", self.device)

    @classmethod
    def from_config(cls, config: GazeConfig, device: torch.device | str = "cpu") -> "GazeState":
        return cls(
            gaze_assisted=config.gaze_assisted,
            gaze_locked=config.gaze_locked,
            gaze_position=config.gaze_position,
            eye_center=config.eye_center,
            device=device,
        )

    def update(self, gaze_position=None, eye_center=None) -> None:
        """Replace the live gaze and/or eye-centre reference between frames."""
        if gaze_position is not None:
            self.gaze_position = _eye_pairs(gaze_position, "gaze_position", self.device)
        if eye_center is not None:
            self.eye_center = _eye_pairs(eye_center, "eye_center", self.device)

    def reference(self, eye: int, follow_gaze: bool) -> torch.Tensor:
        """Anchor point of ``eye``: live gaze or fixed eye centre."""
        _check_eye(eye)
        if follow_gaze:
            return self.gaze_position[eye]
        return self.eye_center[eye]


def _eye_pairs(value, name: str, device: torch.device) -> torch.Tensor:
    tensor = torch.as_tensor(value, dtype=torch.float32, device=device)
    if tensor.shape != (NUM_EYES, 2):
        raise ValueError(f"{name} must have shape (2, 2), got {tuple(tensor.shape)}")
    return tensor.clone()


def effective_position(
    positions: torch.Tensor,
    eye: int,
    follow_gaze: bool,
    gaze: GazeState,
) -> torch.Tensor:
    """Gaze-corrected normalized centres ``[N, 2]`` for one eye."""
    return positions - 0.5 + gaze.reference(eye, follow_gaze)


def to_pixel(
    coords: torch.Tensor,
    resolution: Tuple[int, int],
    policy: str = "clamp",
) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """Convert normalized coordinates to integer texel indices.

    Args:
        coords: ``[N, 2]`` normalized ``(x, y)``.
        resolution: ``(width, height)``.
        policy: ``clamp``, ``wrap`` or ``discard``.

    Returns:
        Tuple ``(px, py, valid)``. ``px``/``py`` are always safe to index
        with; ``valid`` is ``False`` only for discarded coordinates.

    Raises:
        ValueError: On an unknown policy.
    """
    if policy not in COORDINATE_POLICIES:
        raise ValueError(f"Unknown coordinate policy '{policy}'. Valid: {COORDINATE_POLICIES}")

    width, height = resolution
    scale = torch.tensor([width, height], dtype=coords.dtype, device=coords.device)
    scaled = coords * scale
    pixels = torch.trunc(scaled).long()
    px, py = pixels[:, 0], pixels[:, 1]

    if policy == "wrap":
        px = torch.remainder(px, width)
        py = torch.remainder(py, height)
        valid = torch.ones_like(px, dtype=torch.bool)
    else:
        # Bounds checked before truncation, which maps (-1, 0) onto texel 0
        valid = ((scaled >= 0) & (scaled < scale)).all(dim=1)
        if policy == "clamp":
            valid = torch.ones_like(valid)
        px = px.clamp(0, width - 1)
        py = py.clamp(0, height - 1)
    return px, py, valid


class StimulationSampler:
    """Reads one scalar of stimulation per phosphene for a given eye.

    Attributes:
        resolution: ``(width, height)`` of the stimulation images.
        policy: Out-of-range coordinate policy for sampling.
    """

    def __init__(self, resolution: Tuple[int, int], policy: str = "clamp") -> None:
        if policy not in COORDINATE_POLICIES:
            raise ValueError(f"Unknown coordinate policy '{policy}'. Valid: {COORDINATE_POLICIES}")
        self.resolution = tuple(int(v) for v in resolution)
        self.policy = policy

    def locate(
        self,
        positions: torch.Tensor,
        eye: int,
        follow_gaze: bool,
        gaze: GazeState,
        policy: str | None = None,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """Texel indices ``(px, py, valid)`` of each phosphene for ``eye``."""
        coords = effective_position(positions, eye, follow_gaze, gaze)
        return to_pixel(coords, self.resolution, policy or self.policy)

    def sample(
        self,
        positions: torch.Tensor,
        eye: int,
        gaze: GazeState,
        image: torch.Tensor,
    ) -> torch.Tensor:
        """Sample the stimulation image of ``eye`` at every phosphene.

        Sampling is anchored on the gaze when ``gaze.gaze_assisted`` is set,
        on the eye centre otherwise.

        Args:
            positions: ``[N, 2]`` nominal phosphene centres.
            eye: 0 (left) or 1 (right).
            gaze: Current gaze state.
            image: ``[H, W]`` or ``[H, W, C]`` stimulation for this eye; the
                first channel is used.

        Returns:
            ``[N]`` stimulation values (0 for discarded coordinates).

        Raises:
            ValueError: If the image does not match the resolution.
        """
        if image.ndim == 3:
            image = image[..., 0]
        width, height = self.resolution
        if image.shape != (height, width):
            raise ValueError(
                f"stimulation image must have shape (H, W) = {(height, width)}, "
                f"got {tuple(image.shape)}"
            )

        px, py, valid = self.locate(positions, eye, gaze.gaze_assisted, gaze)
        stimulation = image[py, px].to(positions.dtype)
        return torch.where(valid, stimulation, torch.zeros_like(stimulation))
