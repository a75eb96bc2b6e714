"""Phosphene layout construction.

Layouts are inputs to the simulation: positions and radii in normalized
screen units (``[0, 1]`` on both axes). The factories here cover regular
grids, uniformly scattered layouts and explicit lists; anything produced by
an external electrode model can be passed through :func:`explicit_layout`.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import torch


def _axis(n: int, margin: float, device: torch.device | str) -> torch.Tensor:
    if n == 1:
        return torch.full((1,), 0.5, device=device)
    return torch.linspace(margin, 1.0 - margin, n, device=device)


def _generator(seed: Optional[int]) -> Optional[torch.Generator]:
    # Local generator keeps layout draws off the global RNG
    if seed is None:
        return None
    generator = torch.Generator()
    generator.manual_seed(seed)
    return generator


def _jittered_sizes(
    count: int,
    size: float,
    size_jitter: float,
    generator: Optional[torch.Generator],
) -> torch.Tensor:
    sizes = torch.full((count,), float(size))
    if size_jitter > 0:
        noise = torch.rand(count, generator=generator) * 2.0 - 1.0
        sizes = sizes * (1.0 + size_jitter * noise)
    return sizes.clamp(min=0.0)


def grid_layout(
    rows: int = 16,
    cols: int = 16,
    size: float = 0.01,
    margin: float = 0.05,
    size_jitter: float = 0.0,
    seed: Optional[int] = None,
    device: torch.device | str = "cpu",
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Regular ``rows x cols`` lattice of phosphenes.

    Args:
        rows: Number of rows (y axis).
        cols: Number of columns (x axis).
        size: Nominal phosphene radius in normalized units.
        margin: Distance of the outer rows/columns from the screen border.
        size_jitter: Relative uniform jitter on the radius (0 disables).
        seed: Seed for the jitter generator.
        device: Torch device for the returned tensors.

    Returns:
        Tuple ``(positions [rows*cols, 2], sizes [rows*cols])``.

    Raises:
        ValueError: If ``rows`` or ``cols`` is not positive or ``margin`` is
            outside ``[0, 0.5)``.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError(f"rows and cols must be positive, got {rows}x{cols}")
    if not 0.0 <= margin < 0.5:
        raise ValueError(f"margin must lie in [0, 0.5), got {margin}")

    x = _axis(cols, margin, device)
    y = _axis(rows, margin, device)
    yy, xx = torch.meshgrid(y, x, indexing="ij")
    positions = torch.stack([xx.flatten(), yy.flatten()], dim=1)

    sizes = _jittered_sizes(rows * cols, size, size_jitter, _generator(seed))
    return positions, sizes.to(device)


def random_layout(
    count: int = 256,
    size: float = 0.01,
    margin: float = 0.05,
    size_jitter: float = 0.0,
    seed: Optional[int] = None,
    device: torch.device | str = "cpu",
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Phosphenes scattered uniformly inside ``[margin, 1 - margin]^2``.

    Raises:
        ValueError: If ``count`` is not positive or ``margin`` is invalid.
    """
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    if not 0.0 <= margin < 0.5:
        raise ValueError(f"margin must lie in [0, 0.5), got {margin}")

    generator = _generator(seed)
    positions = margin + torch.rand(count, 2, generator=generator) * (1.0 - 2.0 * margin)
    sizes = _jittered_sizes(count, size, size_jitter, generator)
    return positions.to(device), sizes.to(device)


def explicit_layout(
    positions: Sequence[Sequence[float]] | torch.Tensor,
    sizes: Sequence[float] | torch.Tensor,
    device: torch.device | str = "cpu",
) -> Tuple[torch.Tensor, torch.Tensor]:
    """Wrap externally supplied positions and radii.

    Raises:
        ValueError: If shapes disagree, a radius is negative, or a position
            lies outside ``[0, 1]``.
    """
    positions = torch.as_tensor(positions, dtype=torch.float32, device=device)
    sizes = torch.as_tensor(sizes, dtype=torch.float32, device=device)

    if positions.ndim != 2 or positions.shape[1] != 2:
        raise ValueError(f"positions must have shape [N, 2], got {tuple(positions.shape)}")
    if sizes.shape != (positions.shape[0],):
        raise ValueError(
            f"sizes must have shape [{positions.shape[0]}], got {tuple(sizes.shape)}"
        )
    if (sizes < 0).any():
        raise ValueError("phosphene sizes must be non-negative")
    if ((positions < 0) | (positions > 1)).any():
        raise ValueError("phosphene positions must lie in [0, 1]")
    return positions, sizes
