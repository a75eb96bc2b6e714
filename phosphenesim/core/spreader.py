"""Gaussian spreading of sparse activations into the render field.

Every activation-field texel ``(x, y)`` holding ``(a, size)`` above threshold
becomes a Gaussian blob centred on the vertically flipped texel
``(x, H - 1 - y)`` of the render field:

* the centre is overwritten with ``(a, a, a, 1)``;
* ``sigma = 2 * size`` and ``scale = gaussian(0, sigma)``;
* for integer offsets ``(dx, dy)`` with ``dx, dy >= 0``, ``(dx, dy) != (0, 0)``
  and ``dx² + dy² < max_radius²`` where ``max_radius = 4 * size * W`` pixels,
  ``a * gaussian(d, sigma) / scale`` is added to the RGB channels of the four
  mirrored texels ``(x ± dx, fy ± dy)``, with
  ``d = sqrt((dx / W)² + (dy / H)²)`` measured in aspect-corrected
  normalized units.

Offsets on an axis (``dx == 0`` or ``dy == 0``) mirror onto the same texel
twice and therefore contribute twice; this matches the quadrant loop and is
kept so both backends render the same footprint.

All centre writes are applied before any neighbour accumulation, so the
result does not depend on the order in which source texels are visited.
Accumulation into shared destination texels uses ``index_add_`` (atomic on
CUDA) in the vectorized backend and a sequential loop in the reference one.
"""

from __future__ import annotations

import math
from typing import Iterator, Tuple

import numpy as np
import torch

from phosphenesim.config.schema import SPREAD_POLICIES
from phosphenesim.core.fields import FieldBuffers

SIZE_THRESHOLD = 1e-5
ACTIVATION_THRESHOLD = 1e-3
SQRT_2PI = math.sqrt(2.0 * math.pi)

# Upper bound on (source, offset) pairs materialised at once
_MAX_PAIRS_PER_CHUNK = 1 << 22


def gaussian(d, sigma):
    """Normal density ``exp(-d² / 2σ²) / (σ √(2π))`` for floats or tensors."""
    if isinstance(d, torch.Tensor) or isinstance(sigma, torch.Tensor):
        return torch.exp(-(d ** 2) / (2.0 * sigma ** 2)) / (sigma * SQRT_2PI)
    return math.exp(-(d * d) / (2.0 * sigma * sigma)) / (sigma * SQRT_2PI)


def max_radius(size: float, width: int) -> float:
    """Search radius in pixels of a phosphene of normalized radius ``size``."""
    return size * 4 * width


def iter_spread_offsets(radius: float) -> Iterator[Tuple[int, int]]:
    """Quadrant offsets visited for a search radius, in loop order.

    The inner loop stops at the first ``dy`` reaching the radius; ``dy``
    only grows, so no shorter offset is skipped.
    """
    r2 = radius * radius
    dx = 0
    while dx < radius:
        dy = 0
        while dy < radius:
            if dx * dx + dy * dy >= r2:
                break
            if dx or dy:
                yield dx, dy
            dy += 1
        dx += 1


def _active_sources(fields: FieldBuffers) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    activation = fields.activation_field[..., 0]
    size = fields.activation_field[..., 1]
    mask = (size >= SIZE_THRESHOLD) & (activation >= ACTIVATION_THRESHOLD)
    index = mask.nonzero()
    return index, activation[mask], size[mask]


def _write_centres(fields: FieldBuffers, index: torch.Tensor, activation: torch.Tensor) -> None:
    eye, y, x = index.unbind(dim=1)
    flipped_y = fields.height - 1 - y
    centre = torch.stack(
        [activation, activation, activation, torch.ones_like(activation)], dim=1
    )
    fields.render_field.index_put_((eye, flipped_y, x), centre)


def spread_vectorized(fields: FieldBuffers, policy: str = "discard") -> int:
    """Spread all active texels with batched torch operations.

    Args:
        fields: Buffers whose activation field is read and render field written.
        policy: ``discard`` drops contributions outside the raster, ``clamp``
            piles them onto the nearest edge texel.

    Returns:
        Number of source texels spread.
    """
    index, activation, size = _active_sources(fields)
    if index.shape[0] == 0:
        return 0
    _write_centres(fields, index, activation)

    width, height = fields.resolution
    device = fields.render_field.device
    flat_render = fields.render_field.view(-1, 4)

    size64 = size.double()
    radius = max_radius(size64, width)
    pairs_per_source = int(math.ceil(radius.max().item())) ** 2
    chunk = max(1, _MAX_PAIRS_PER_CHUNK // max(1, pairs_per_source))

    for start in range(0, index.shape[0], chunk):
        stop = start + chunk
        eye, y, x = index[start:stop].unbind(dim=1)
        a = activation[start:stop].double()
        sigma = 2.0 * size64[start:stop]
        r = radius[start:stop]

        extent = int(math.ceil(r.max().item()))
        offsets = torch.arange(extent, device=device)
        dx, dy = torch.meshgrid(offsets, offsets, indexing="ij")
        dx, dy = dx.flatten(), dy.flatten()
        dist2 = (dx * dx + dy * dy).double()

        inside = (dist2.unsqueeze(0) < (r * r).unsqueeze(1)) & (dist2 > 0).unsqueeze(0)
        src, off = inside.nonzero(as_tuple=True)
        if src.numel() == 0:
            continue

        d = torch.sqrt(
            (dx[off].double() / width) ** 2 + (dy[off].double() / height) ** 2
        )
        scale = gaussian(torch.zeros_like(sigma[src]), sigma[src])
        spread = (a[src] * gaussian(d, sigma[src]) / scale).to(flat_render.dtype)

        fy = height - 1 - y[src]
        tx = torch.cat([x[src] + dx[off], x[src] - dx[off], x[src] + dx[off], x[src] - dx[off]])
        ty = torch.cat([fy + dy[off], fy + dy[off], fy - dy[off], fy - dy[off]])
        te = eye[src].repeat(4)
        values = spread.repeat(4)

        if policy == "clamp":
            tx = tx.clamp(0, width - 1)
            ty = ty.clamp(0, height - 1)
        else:
            keep = (tx >= 0) & (tx < width) & (ty >= 0) & (ty < height)
            tx, ty, te, values = tx[keep], ty[keep], te[keep], values[keep]

        contribution = torch.zeros(values.shape[0], 4, dtype=flat_render.dtype, device=device)
        contribution[:, :3] = values.unsqueeze(1)
        flat_render.index_add_(0, (te * height + ty) * width + tx, contribution)

    return index.shape[0]


def spread_reference(fields: FieldBuffers, policy: str = "discard") -> int:
    """Single-threaded spread following the quadrant loop literally.

    Slow; intended for small rasters and for checking the vectorized backend.
    """
    index, activation, size = _active_sources(fields)
    if index.shape[0] == 0:
        return 0
    _write_centres(fields, index, activation)

    width, height = fields.resolution
    render = fields.render_field.detach().cpu().numpy().copy()

    for (eye, y, x), a, s in zip(index.tolist(), activation.tolist(), size.tolist()):
        flipped_y = height - 1 - y
        sigma = 2.0 * s
        scale = gaussian(0.0, sigma)
        for dx, dy in iter_spread_offsets(max_radius(s, width)):
            d = math.sqrt((dx / width) ** 2 + (dy / height) ** 2)
            spread = a * gaussian(d, sigma) / scale
            for tx, ty in (
                (x + dx, flipped_y + dy),
                (x - dx, flipped_y + dy),
                (x + dx, flipped_y - dy),
                (x - dx, flipped_y - dy),
            ):
                if policy == "clamp":
                    tx = min(max(tx, 0), width - 1)
                    ty = min(max(ty, 0), height - 1)
                elif not (0 <= tx < width and 0 <= ty < height):
                    continue
                render[eye, ty, tx, :3] += np.float32(spread)

    fields.render_field.copy_(torch.from_numpy(render))
    return index.shape[0]


class ActivationSpreader:
    """Renders the activation field into the render field.

    Attributes:
        backend: Registered backend name (``vectorized`` or ``reference``).
        policy: Handling of contributions outside the raster.
    """

    def __init__(self, backend: str = "vectorized", policy: str = "discard") -> None:
        from phosphenesim.register_components import register_all
        from phosphenesim.registry import SPREAD_REGISTRY

        register_all()
        if policy not in SPREAD_POLICIES:
            raise ValueError(f"Unknown spread policy '{policy}'. Valid: {SPREAD_POLICIES}")
        self._spread = SPREAD_REGISTRY.get_class(backend)
        self.backend = backend
        self.policy = policy

    def __call__(self, fields: FieldBuffers) -> int:
        """Spread every active texel of both eyes; returns the source count."""
        return self._spread(fields, policy=self.policy)
