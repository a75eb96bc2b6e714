"""Abstract base class for per-phosphene temporal filters.

A temporal filter maps the prior per-phosphene state and the current
stimulation sample to the next state. The state itself lives in
:class:`~phosphenesim.core.phosphenes.PhospheneStore`, so filters hold only
parameters and can be swapped without touching stored activations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

import torch
import torch.nn as nn


class BaseFilter(nn.Module, ABC):
    """Abstract base class for temporal filters.

    All filters must:
    1. Inherit from ``nn.Module`` (so ``.to(device)`` works in pipelines)
    2. Implement ``forward(activation, trace, stimulation)``
    3. Provide ``from_config()`` for YAML instantiation
    4. Provide ``to_dict()`` for serialization

    Example:
        >>> class PassThrough(BaseFilter):
        ...     def forward(self, activation, trace, stimulation):
        ...         return stimulation.clamp(min=0), trace
    """

    @abstractmethod
    def forward(
        self,
        activation: torch.Tensor,
        trace: torch.Tensor,
        stimulation: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """Advance the filter state by one frame.

        Args:
            activation: Prior activation, shape ``[num_phosphenes]``.
            trace: Prior habituation trace, shape ``[num_phosphenes]``.
            stimulation: Sampled stimulation, shape ``[num_phosphenes]``.

        Returns:
            Tuple ``(new_activation, new_trace)`` with the input shapes.
        """
        ...

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BaseFilter":
        """Construct a filter from a configuration dictionary."""
        return cls(**config)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise filter parameters to a dictionary."""
        return {}
