"""Per-frame activation and render rasters.

Both fields are stereo, stored eye-major as dense tensors:

* activation field ``[2, H, W, 2]``: ``(activation, size)`` per texel;
* render field ``[2, H, W, 4]``: RGBA intensity per texel.

They are transient: :meth:`FieldBuffers.reset` runs at the start of every
frame before any phosphene writes into them.
"""

from __future__ import annotations

from typing import Tuple

import torch

from phosphenesim.core.phosphenes import NUM_EYES, _check_eye


class FieldBuffers:
    """Owner of the activation and render fields of one simulator.

    Attributes:
        resolution: ``(width, height)`` in pixels.
        activation_field: ``[2, H, W, 2]`` tensor.
        render_field: ``[2, H, W, 4]`` tensor.
    """

    def __init__(
        self,
        resolution: Tuple[int, int],
        device: torch.device | str = "cpu",
    ) -> None:
        width, height = (int(v) for v in resolution)
        if width <= 0 or height <= 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        self.resolution = (width, height)
        self.device = torch.device(device)
        self.activation_field = torch.zeros(NUM_EYES, height, width, 2, device=self.device)
        self.render_field = torch.zeros(NUM_EYES, height, width, 4, device=self.device)
        self.reset()

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]

    def reset(self) -> None:
        """Zero the activation field to (0, 0) and the render field to (0, 0, 0, 1)."""
        self.activation_field.zero_()
        self.render_field.zero_()
        self.render_field[..., 3] = 1.0

    def intensity(self, eye: int | None = None) -> torch.Tensor:
        """Rendered grey level (red channel) as ``[2, H, W]`` or ``[H, W]``."""
        if eye is None:
            return self.render_field[..., 0]
        _check_eye(eye)
        return self.render_field[eye, ..., 0]

    def debug_export(self, eye: int = 0) -> torch.Tensor:
        """Flatten one eye's render field into a readable ``[H*W, 4]`` buffer.

        Row ``x + y*W`` of the result holds texel ``(x, y)``.
        """
        _check_eye(eye)
        return self.render_field[eye].reshape(-1, 4).clone().cpu()
