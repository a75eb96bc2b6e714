"""Persistent per-phosphene state shared by both eyes."""

from __future__ import annotations

from typing import Any, Dict

import torch

NUM_EYES = 2


class PhospheneStore:
    """Arena of phosphene state, indexed by (phosphene, eye).

    Positions and sizes are fixed at construction and shared by both eyes;
    ``activation`` and ``trace`` hold one column per eye and are the only
    tensors that change between frames.

    Attributes:
        positions: ``[N, 2]`` nominal normalized centres ``(x, y)``.
        sizes: ``[N]`` normalized radii.
        activation: ``[N, 2]`` perceived brightness per eye, never negative.
        trace: ``[N, 2]`` habituation memory per eye.
    """

    def __init__(
        self,
        positions: torch.Tensor,
        sizes: torch.Tensor,
        device: torch.device | str | None = None,
    ) -> None:
        """Create the store with zeroed activation and trace.

        Args:
            positions: ``[N, 2]`` normalized centres.
            sizes: ``[N]`` normalized radii.
            device: Target device; defaults to the device of ``positions``.

        Raises:
            ValueError: If shapes are inconsistent or the layout is empty.
        """
        positions = torch.as_tensor(positions, dtype=torch.float32)
        sizes = torch.as_tensor(sizes, dtype=torch.float32)
        if positions.ndim != 2 or positions.shape[1] != 2:
            raise ValueError(f"positions must have shape [N, 2], got {tuple(positions.shape)}")
        if sizes.shape != (positions.shape[0],):
            raise ValueError(
                f"sizes must have shape [{positions.shape[0]}], got {tuple(sizes.shape)}"
            )
        if positions.shape[0] == 0:
            raise ValueError("a phosphene layout needs at least one phosphene")

        self.device = torch.device(device) if device is not None else positions.device
        self.positions = positions.to(self.device)
        self.sizes = sizes.to(self.device)
        self.activation = torch.zeros(len(self), NUM_EYES, device=self.device)
        self.trace = torch.zeros(len(self), NUM_EYES, device=self.device)

    def __len__(self) -> int:
        return self.positions.shape[0]

    def reset_state(self) -> None:
        """Zero activation and trace, e.g. between independent recordings."""
        self.activation.zero_()
        self.trace.zero_()

    def eye_state(self, eye: int) -> tuple[torch.Tensor, torch.Tensor]:
        """Return views of ``(activation, trace)`` for one eye."""
        _check_eye(eye)
        return self.activation[:, eye], self.trace[:, eye]

    def set_eye_state(self, eye: int, activation: torch.Tensor, trace: torch.Tensor) -> None:
        _check_eye(eye)
        self.activation[:, eye] = activation
        self.trace[:, eye] = trace

    def to(self, device: torch.device | str) -> "PhospheneStore":
        """Move all tensors to ``device`` in place and return ``self``."""
        self.device = torch.device(device)
        self.positions = self.positions.to(self.device)
        self.sizes = self.sizes.to(self.device)
        self.activation = self.activation.to(self.device)
        self.trace = self.trace.to(self.device)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot of the store as CPU tensors."""
        return {
            "positions": self.positions.cpu(),
            "sizes": self.sizes.cpu(),
            "activation": self.activation.cpu(),
            "trace": self.trace.cpu(),
        }


def _check_eye(eye: int) -> None:
    if eye not in (0, 1):
        raise ValueError(f"eye index must be 0 (left) or 1 (right), got {eye}")
