"""Per-frame phosphene update and activation-field scatter.

For one eye, every phosphene (independently, vectorized over the layout):

1. samples the stimulation at its gaze-assisted sampling position;
2. advances ``(activation, trace)`` through the temporal filter;
3. overwrites one texel of the eye's activation field, at its gaze-locked
   output position, with ``(new_activation, size)``.

Step 3 is a plain scatter. When two phosphenes land on the same texel the
last write wins; with ``index_put_`` the winner is unspecified (it can differ
between devices). Such collisions are accepted and left unsynchronized.
"""

from __future__ import annotations

import torch

from phosphenesim.core.fields import FieldBuffers
from phosphenesim.core.phosphenes import NUM_EYES, PhospheneStore
from phosphenesim.core.sampling import GazeState, StimulationSampler
from phosphenesim.filters.base import BaseFilter


class ActivationUpdater:
    """Advances phosphene state and writes the activation field.

    Attributes:
        temporal_filter: Filter mapping (activation, trace, stimulation) to
            the next state.
        sampler: Stimulation sampler (its policy applies to sampling).
        output_policy: Out-of-range policy for the activation-field write.
    """

    def __init__(
        self,
        temporal_filter: BaseFilter,
        sampler: StimulationSampler,
        output_policy: str = "clamp",
    ) -> None:
        self.temporal_filter = temporal_filter
        self.sampler = sampler
        self.output_policy = output_policy

    def update_eye(
        self,
        store: PhospheneStore,
        fields: FieldBuffers,
        eye: int,
        gaze: GazeState,
        image: torch.Tensor,
    ) -> torch.Tensor:
        """Run one frame-step of every phosphene for ``eye``.

        Args:
            store: Phosphene state, updated in place.
            fields: Field buffers; only ``activation_field[eye]`` is written.
            eye: 0 (left) or 1 (right).
            gaze: Current gaze state.
            image: Stimulation image of this eye, ``[H, W]`` or ``[H, W, C]``.

        Returns:
            The ``[N]`` stimulation samples used for this step.
        """
        activation, trace = store.eye_state(eye)
        stimulation = self.sampler.sample(store.positions, eye, gaze, image)

        new_activation, new_trace = self.temporal_filter(activation, trace, stimulation)
        store.set_eye_state(eye, new_activation, new_trace)

        px, py, valid = self.sampler.locate(
            store.positions, eye, gaze.gaze_locked, gaze, policy=self.output_policy
        )
        values = torch.stack([new_activation, store.sizes], dim=1)
        fields.activation_field[eye].index_put_(
            (py[valid], px[valid]), values[valid], accumulate=False
        )
        return stimulation

    def update(
        self,
        store: PhospheneStore,
        fields: FieldBuffers,
        gaze: GazeState,
        stimulation: torch.Tensor,
    ) -> torch.Tensor:
        """Update both eyes from a stereo stimulation tensor.

        Args:
            stimulation: ``[2, H, W]`` or ``[2, H, W, C]``.

        Returns:
            ``[N, 2]`` stimulation samples per phosphene and eye.

        Raises:
            ValueError: If the leading dimension is not the eye axis.
        """
        if stimulation.ndim not in (3, 4) or stimulation.shape[0] != NUM_EYES:
            raise ValueError(
                "stimulation must have shape (2, H, W) or (2, H, W, C), "
                f"got {tuple(stimulation.shape)}"
            )
        samples = [
            self.update_eye(store, fields, eye, gaze, stimulation[eye])
            for eye in range(NUM_EYES)
        ]
        return torch.stack(samples, dim=1)
