"""Activation/trace habituation filter for phosphene brightness.

Each phosphene carries, per eye, an *activation* (perceived brightness) and a
*trace* (habituation memory). One frame of stimulation ``s`` advances them as

* a_{t+1} = max(0, intensity_decay · a_t + input_effect · (s − tr_t))
* tr_{t+1} = trace_decay · tr_t + trace_increase · s

Both updates read the prior trace ``tr_t``, so adaptation lags stimulation by
exactly one frame. Under sustained stimulation the trace grows towards
``trace_increase · s / (1 − trace_decay)`` and suppresses the activation;
without stimulation both decay geometrically to zero.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

import torch

from phosphenesim.config.schema import HabituationConfig
from phosphenesim.filters.base import BaseFilter


class HabituationFilter(BaseFilter):
    """Stateless activation/trace update shared by all phosphenes.

    The filter is vectorized over phosphenes: all tensors are
    ``[num_phosphenes]`` (or any matching shape), and no phosphene reads
    another's state.
    """

    def __init__(
        self,
        input_effect: float = 0.75,
        intensity_decay: float = 0.05,
        trace_increase: float = 0.1,
        trace_decay: float = 0.9,
    ) -> None:
        """Initialise the filter.

        Args:
            input_effect: Gain from stimulation minus trace to activation.
            intensity_decay: Activation carry-over factor, expected in [0, 1).
            trace_increase: Gain from stimulation to trace.
            trace_decay: Trace carry-over factor, expected in [0, 1).
        """
        super().__init__()
        self.input_effect = input_effect
        self.intensity_decay = intensity_decay
        self.trace_increase = trace_increase
        self.trace_decay = trace_decay

    def forward(
        self,
        activation: torch.Tensor,
        trace: torch.Tensor,
        stimulation: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """Advance activation and trace by one frame.

        Args:
            activation: Prior activation.
            trace: Prior trace.
            stimulation: Current stimulation sample (any sign).

        Returns:
            ``(new_activation, new_trace)``; ``new_activation`` is never negative.
        """
        new_activation = (
            self.intensity_decay * activation
            + self.input_effect * (stimulation - trace)
        ).clamp(min=0.0)
        new_trace = self.trace_decay * trace + self.trace_increase * stimulation
        return new_activation, new_trace

    def forward_sequence(
        self,
        stimulation: torch.Tensor,
        activation: torch.Tensor | None = None,
        trace: torch.Tensor | None = None,
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """Run the filter over a stimulation sequence.

        Args:
            stimulation: ``[time, num_phosphenes]`` stimulation samples.
            activation: Initial activation (zeros when omitted).
            trace: Initial trace (zeros when omitted).

        Returns:
            Tuple of ``[time, num_phosphenes]`` activation and trace histories.
        """
        if stimulation.ndim != 2:
            raise ValueError(
                f"Expected stimulation of shape (time, phosphenes), got {tuple(stimulation.shape)}"
            )
        if activation is None:
            activation = torch.zeros_like(stimulation[0])
        if trace is None:
            trace = torch.zeros_like(stimulation[0])

        activations = torch.zeros_like(stimulation)
        traces = torch.zeros_like(stimulation)
        for t in range(stimulation.shape[0]):
            activation, trace = self.forward(activation, trace, stimulation[t])
            activations[t] = activation
            traces[t] = trace
        return activations, traces

    def forward_steady_state(self, stimulation: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """Fixed point of the filter under constant stimulation.

        With ``s`` constant the trace settles at ``ti·s / (1 − td)`` and the
        activation at ``max(0, ie·(s − tr*) / (1 − id))``.

        Raises:
            ValueError: If a decay factor is not below 1 (no fixed point).
        """
        if self.trace_decay >= 1.0 or self.intensity_decay >= 1.0:
            raise ValueError(
                "Steady state requires intensity_decay < 1 and trace_decay < 1, got "
                f"{self.intensity_decay} and {self.trace_decay}"
            )
        trace = self.trace_increase * stimulation / (1.0 - self.trace_decay)
        activation = (
            self.input_effect * (stimulation - trace) / (1.0 - self.intensity_decay)
        ).clamp(min=0.0)
        return activation, trace

    @classmethod
    def from_config(cls, config: HabituationConfig | Dict[str, Any]) -> "HabituationFilter":
        if isinstance(config, HabituationConfig):
            config = config.to_dict()
        return cls(**HabituationConfig.from_dict(config).to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_effect": self.input_effect,
            "intensity_decay": self.intensity_decay,
            "trace_increase": self.trace_increase,
            "trace_decay": self.trace_decay,
        }

    def extra_repr(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
