"""Time-varying stimulation: a drifting bar and an on/off flash."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import torch

from phosphenesim.stimuli.gaussian import gaussian_stimulus, screen_grid


def moving_bar_stimulation(
    resolution: Tuple[int, int],
    frames: int = 30,
    width: float = 0.05,
    speed: float = 0.02,
    orientation_deg: float = 0.0,
    amplitude: float = 1.0,
    disparity: float = 0.0,
    device: torch.device | str = "cpu",
) -> torch.Tensor:
    """Bright bar sweeping across the screen.

    The bar starts through the screen centre and moves ``speed`` normalized
    units per frame along its normal, wrapping around after one unit.
    ``orientation_deg = 0`` gives a vertical bar moving rightwards.

    Returns:
        Stereo sequence ``[frames, 2, H, W]``.
    """
    if frames <= 0:
        raise ValueError(f"frames must be positive, got {frames}")
    if width <= 0:
        raise ValueError(f"bar width must be positive, got {width}")

    xx, yy = screen_grid(resolution, device)
    theta = math.radians(orientation_deg)
    normal = (math.cos(theta), math.sin(theta))

    out = torch.zeros(frames, 2, *xx.shape, device=device)
    for t in range(frames):
        offset = (t * speed) % 1.0
        for eye, shift in ((0, 0.0), (1, disparity)):
            u = (xx - 0.5 - shift) * normal[0] + (yy - 0.5) * normal[1] - offset
            # Wrapped distance to the bar axis
            u = torch.remainder(u + 0.5, 1.0) - 0.5
            out[t, eye] = amplitude * (u.abs() <= width / 2).float()
    return out


def flash_stimulation(
    resolution: Tuple[int, int],
    frames: int = 30,
    center: Sequence[float] = (0.5, 0.5),
    sigma: float = 0.1,
    amplitude: float = 1.0,
    on_frames: int = 10,
    off_frames: int = 10,
    disparity: float = 0.0,
    device: torch.device | str = "cpu",
) -> torch.Tensor:
    """Gaussian blob switched on for ``on_frames`` then off for ``off_frames``, repeating.

    Useful to watch habituation build up during the on phase and recover
    during the off phase.

    Returns:
        Stereo sequence ``[frames, 2, H, W]``.
    """
    if frames <= 0:
        raise ValueError(f"frames must be positive, got {frames}")
    if on_frames < 0 or off_frames < 0 or on_frames + off_frames == 0:
        raise ValueError(
            f"on_frames/off_frames must be non-negative and not both zero, "
            f"got {on_frames}/{off_frames}"
        )

    xx, yy = screen_grid(resolution, device)
    cx, cy = center
    blob = torch.stack(
        [
            gaussian_stimulus(xx, yy, cx, cy, amplitude, sigma),
            gaussian_stimulus(xx, yy, cx + disparity, cy, amplitude, sigma),
        ],
        dim=0,
    )
    period = on_frames + off_frames
    on = torch.tensor(
        [(t % period) < on_frames for t in range(frames)],
        dtype=blob.dtype,
        device=device,
    )
    return on.view(frames, 1, 1, 1) * blob.unsqueeze(0)
