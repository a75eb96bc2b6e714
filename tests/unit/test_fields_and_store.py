"""Unit tests for phosphene state storage and the per-frame field buffers."""

import pytest
import torch

from phosphenesim.core.fields import FieldBuffers
from phosphenesim.core.phosphenes import PhospheneStore


class TestPhospheneStore:
    """Tests for PhospheneStore."""

    def test_initial_state_is_zero(self):
        store = PhospheneStore(torch.rand(5, 2), torch.full((5,), 0.01))
        assert len(store) == 5
        assert store.activation.shape == (5, 2)
        assert store.trace.shape == (5, 2)
        assert store.activation.abs().sum() == 0
        assert store.trace.abs().sum() == 0

    def test_eye_state_is_per_eye(self):
        store = PhospheneStore(torch.rand(3, 2), torch.full((3,), 0.01))
        store.set_eye_state(1, torch.ones(3), torch.full((3,), 2.0))

        left_a, left_t = store.eye_state(0)
        right_a, right_t = store.eye_state(1)
        assert left_a.sum() == 0 and left_t.sum() == 0
        assert torch.equal(right_a, torch.ones(3))
        assert torch.equal(right_t, torch.full((3,), 2.0))

    def test_reset_state(self):
        store = PhospheneStore(torch.rand(3, 2), torch.full((3,), 0.01))
        store.activation += 1.0
        store.trace += 1.0
        store.reset_state()
        assert store.activation.abs().sum() == 0
        assert store.trace.abs().sum() == 0

    def test_invalid_eye(self):
        store = PhospheneStore(torch.rand(3, 2), torch.full((3,), 0.01))
        with pytest.raises(ValueError, match="eye index"):
            store.eye_state(2)

    @pytest.mark.parametrize(
        "positions,sizes",
        [
            (torch.rand(4, 3), torch.ones(4)),
            (torch.rand(4, 2), torch.ones(5)),
            (torch.zeros(0, 2), torch.zeros(0)),
        ],
    )
    def test_rejects_bad_layouts(self, positions, sizes):
        with pytest.raises(ValueError):
            PhospheneStore(positions, sizes)


class TestFieldBuffers:
    """Tests for FieldReset and DebugExport."""

    def test_shapes(self, small_fields):
        assert small_fields.activation_field.shape == (2, 32, 32, 2)
        assert small_fields.render_field.shape == (2, 32, 32, 4)

    def test_reset_values(self):
        fields = FieldBuffers((8, 6))
        fields.activation_field.fill_(3.0)
        fields.render_field.fill_(-2.0)

        fields.reset()

        assert torch.equal(fields.activation_field, torch.zeros(2, 6, 8, 2))
        expected = torch.zeros(2, 6, 8, 4)
        expected[..., 3] = 1.0
        assert torch.equal(fields.render_field, expected)

    def test_reset_is_idempotent(self):
        fields = FieldBuffers((8, 6))
        fields.reset()
        first = fields.render_field.clone()
        fields.reset()
        assert torch.equal(fields.render_field, first)
        assert fields.activation_field.abs().sum() == 0

    def test_zero_resolution_rejected(self):
        with pytest.raises(ValueError, match="resolution"):
            FieldBuffers((0, 10))

    def test_debug_export_indexing(self):
        """Row x + y*W of the export holds texel (x, y)."""
        fields = FieldBuffers((5, 4))
        fields.render_field[1, 3, 2] = torch.tensor([0.5, 0.6, 0.7, 1.0])

        buffer = fields.debug_export(eye=1)

        assert buffer.shape == (20, 4)
        assert torch.equal(buffer[2 + 3 * 5], torch.tensor([0.5, 0.6, 0.7, 1.0]))

    def test_debug_export_is_a_copy(self):
        fields = FieldBuffers((4, 4))
        buffer = fields.debug_export()
        buffer.fill_(9.0)
        assert fields.render_field[0, 0, 0, 0] == 0.0

    def test_intensity(self):
        fields = FieldBuffers((4, 3))
        fields.render_field[0, 1, 2, 0] = 0.25
        assert fields.intensity().shape == (2, 3, 4)
        assert fields.intensity(0)[1, 2] == 0.25
