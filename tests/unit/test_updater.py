"""Unit tests for ActivationUpdater."""

import pytest
import torch

from phosphenesim.core.fields import FieldBuffers
from phosphenesim.core.phosphenes import PhospheneStore
from phosphenesim.core.sampling import GazeState, StimulationSampler
from phosphenesim.core.updater import ActivationUpdater
from phosphenesim.filters.habituation import HabituationFilter


def make_updater(resolution=(20, 20), sampling_policy="clamp", output_policy="clamp"):
    filt = HabituationFilter(
        input_effect=1.0, intensity_decay=0.9, trace_increase=0.5, trace_decay=0.8
    )
    sampler = StimulationSampler(resolution, policy=sampling_policy)
    return ActivationUpdater(filt, sampler, output_policy=output_policy)


@pytest.fixture
def gaze():
    return GazeState(gaze_position=[[0.75, 0.5], [0.75, 0.5]])


class TestUpdateEye:
    """Tests for single-eye updates."""

    def test_writes_activation_and_size(self, gaze):
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.25, 0.75]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))

        updater.update_eye(store, fields, 0, gaze, torch.ones(20, 20))

        assert fields.activation_field[0, 15, 5].tolist() == pytest.approx([1.0, 0.02])
        assert fields.activation_field[0].abs().sum().item() == pytest.approx(1.02)
        assert fields.activation_field[1].abs().sum() == 0

    def test_only_updates_requested_eye(self, gaze):
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.5, 0.5]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))

        updater.update_eye(store, fields, 1, gaze, torch.ones(20, 20))

        assert store.activation[0].tolist() == pytest.approx([0.0, 1.0])
        assert store.trace[0].tolist() == pytest.approx([0.0, 0.5])

    def test_gaze_locked_output(self, gaze):
        """Sampling uses the eye centre while the output follows gaze."""
        gaze.gaze_locked = True
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.25, 0.75]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))
        image = torch.zeros(20, 20)
        image[15, 5] = 1.0

        updater.update_eye(store, fields, 0, gaze, image)

        assert fields.activation_field[0, 15, 10, 0].item() == pytest.approx(1.0)
        assert fields.activation_field[0, 15, 5, 0].item() == 0.0

    def test_gaze_assisted_sampling_keeps_output(self, gaze):
        """Sampling follows gaze while the output stays at the eye centre."""
        gaze.gaze_assisted = True
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.25, 0.75]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))
        image = torch.zeros(20, 20)
        image[15, 10] = 1.0

        updater.update_eye(store, fields, 0, gaze, image)

        assert fields.activation_field[0, 15, 5, 0].item() == pytest.approx(1.0)

    def test_activation_field_is_overwritten(self, gaze):
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.25, 0.75]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))
        fields.activation_field[0, 15, 5] = torch.tensor([7.0, 7.0])

        updater.update_eye(store, fields, 0, gaze, torch.ones(20, 20))

        assert fields.activation_field[0, 15, 5].tolist() == pytest.approx([1.0, 0.02])

    def test_collision_keeps_one_writer(self, gaze):
        """Two phosphenes on one texel leave exactly one of their values."""
        updater = make_updater()
        store = PhospheneStore(
            torch.tensor([[0.5, 0.5], [0.5, 0.5]]), torch.tensor([0.01, 0.03])
        )
        fields = FieldBuffers((20, 20))

        updater.update_eye(store, fields, 0, gaze, torch.ones(20, 20))

        assert fields.activation_field[0, 10, 10, 1].item() in (
            pytest.approx(0.01),
            pytest.approx(0.03),
        )
        assert (fields.activation_field[0, ..., 1] > 0).sum() == 1

    def test_discarded_output_still_updates_state(self, gaze):
        updater = make_updater(output_policy="discard")
        gaze.update(eye_center=[[1.2, 0.5], [0.5, 0.5]])
        store = PhospheneStore(torch.tensor([[0.5, 0.5]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))

        updater.update_eye(store, fields, 0, gaze, torch.ones(20, 20))

        assert fields.activation_field.abs().sum() == 0
        assert store.activation[0, 0].item() == pytest.approx(1.0)

    def test_discard_skips_write_just_off_raster(self, gaze):
        """An output position in (-1/W, 0) is skipped rather than written to column 0."""
        updater = make_updater(output_policy="discard")
        gaze.update(eye_center=[[0.48, 0.5], [0.5, 0.5]])
        store = PhospheneStore(torch.tensor([[0.01, 0.5]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))

        updater.update_eye(store, fields, 0, gaze, torch.ones(20, 20))

        assert fields.activation_field.abs().sum() == 0
        assert store.activation[0, 0].item() == pytest.approx(1.0)


class TestUpdateStereo:
    """Tests for the two-eye update."""

    def test_update_both_eyes(self, gaze):
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.5, 0.5]]), torch.tensor([0.02]))
        fields = FieldBuffers((20, 20))
        stimulation = torch.stack([torch.ones(20, 20), torch.full((20, 20), 0.5)])

        samples = updater.update(store, fields, gaze, stimulation)

        assert samples.shape == (1, 2)
        assert samples[0].tolist() == pytest.approx([1.0, 0.5])
        assert store.activation[0].tolist() == pytest.approx([1.0, 0.5])

    def test_rejects_mono_stimulation(self, gaze):
        updater = make_updater()
        store = PhospheneStore(torch.tensor([[0.5, 0.5]]), torch.tensor([0.02]))
        with pytest.raises(ValueError, match="stimulation must have shape"):
            updater.update(store, FieldBuffers((20, 20)), gaze, torch.ones(20, 20))
