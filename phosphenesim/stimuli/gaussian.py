"""Gaussian stimulation images.

Stimulation images live on the screen raster: row ``py`` and column ``px``
cover the normalized coordinate ``((px + 0.5) / W, (py + 0.5) / H)``.
The generators return stereo sequences ``[frames, 2, H, W]``; the right eye
is shifted horizontally by ``disparity`` normalized units.

Example:
    >>> from phosphenesim.stimuli.gaussian import gaussian_stimulation
    >>> frames = gaussian_stimulation((64, 48), frames=5, center=(0.5, 0.5), sigma=0.1)
    >>> frames.shape
    torch.Size([5, 2, 48, 64])
"""

from __future__ import annotations

from typing import Sequence, Tuple

import torch


def screen_grid(
    resolution: Tuple[int, int],
    device: torch.device | str = "cpu",
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Normalized texel-centre coordinates ``xx, yy`` of shape ``[H, W]``."""
    width, height = resolution
    x = (torch.arange(width, device=device, dtype=torch.float32) + 0.5) / width
    y = (torch.arange(height, device=device, dtype=torch.float32) + 0.5) / height
    yy, xx = torch.meshgrid(y, x, indexing="ij")
    return xx, yy


def gaussian_stimulus(
    xx: torch.Tensor,
    yy: torch.Tensor,
    center_x: float,
    center_y: float,
    amplitude: float = 1.0,
    sigma: float = 0.1,
) -> torch.Tensor:
    """Isotropic 2D Gaussian bump ``amplitude * exp(-r² / 2σ²)``.

    Args:
        xx: x-coordinates, any shape.
        yy: y-coordinates, same shape as ``xx``.
        center_x: Bump centre along x.
        center_y: Bump centre along y.
        amplitude: Peak value.
        sigma: Standard deviation in the units of ``xx``/``yy``.

    Raises:
        ValueError: If sigma is non-positive or the grids disagree in shape.
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    if xx.shape != yy.shape:
        raise ValueError(f"xx and yy must have the same shape, got {xx.shape} and {yy.shape}")

    r_squared = (xx - center_x) ** 2 + (yy - center_y) ** 2
    return amplitude * torch.exp(-r_squared / (2 * sigma ** 2))


def stereo_pair(image: torch.Tensor) -> torch.Tensor:
    """Duplicate a mono image ``[H, W(, C)]`` into a stereo ``[2, H, W(, C)]`` tensor."""
    return torch.stack([image, image.clone()], dim=0)


def gaussian_stimulation(
    resolution: Tuple[int, int],
    frames: int = 30,
    center: Sequence[float] = (0.5, 0.5),
    sigma: float = 0.1,
    amplitude: float = 1.0,
    disparity: float = 0.0,
    device: torch.device | str = "cpu",
) -> torch.Tensor:
    """Static Gaussian blob held for ``frames`` frames.

    Returns:
        Stereo sequence ``[frames, 2, H, W]``.
    """
    if frames <= 0:
        raise ValueError(f"frames must be positive, got {frames}")
    xx, yy = screen_grid(resolution, device)
    cx, cy = center
    left = gaussian_stimulus(xx, yy, cx, cy, amplitude, sigma)
    right = gaussian_stimulus(xx, yy, cx + disparity, cy, amplitude, sigma)
    pair = torch.stack([left, right], dim=0)
    return pair.unsqueeze(0).expand(frames, -1, -1, -1).clone()


__all__ = [
    "screen_grid",
    "gaussian_stimulus",
    "stereo_pair",
    "gaussian_stimulation",
]
