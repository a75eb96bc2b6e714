"""Unit tests for the configuration schema and YAML loading."""

import pytest
import yaml

from phosphenesim.config.schema import (
    ConfigurationError,
    DisplayConfig,
    GazeConfig,
    HabituationConfig,
    LayoutConfig,
    SimulatorConfig,
    StimulusConfig,
)
from phosphenesim.config.yaml_utils import load_config_file, load_yaml


class TestSectionConfigs:
    """Tests for the individual sections."""

    def test_habituation_defaults(self):
        config = HabituationConfig()
        assert config.input_effect == 0.75
        assert config.intensity_decay == 0.05
        assert config.trace_increase == 0.1
        assert config.trace_decay == 0.9

    def test_from_dict_ignores_unknown_keys(self):
        config = DisplayConfig.from_dict({"resolution": [64, 32], "vsync": True})
        assert config.resolution == [64, 32]
        assert config.spread_backend == "vectorized"

    def test_gaze_from_dict(self):
        config = GazeConfig.from_dict({"gaze_locked": True})
        assert config.gaze_locked is True
        assert config.gaze_assisted is False
        assert config.eye_center == [[0.5, 0.5], [0.5, 0.5]]

    def test_layout_to_dict_drops_none(self):
        data = LayoutConfig().to_dict()
        assert "positions" not in data
        assert "seed" not in data
        assert data["type"] == "grid"

    def test_layout_kwargs_per_type(self):
        assert set(LayoutConfig(type="grid").layout_kwargs()) == {
            "rows", "cols", "size", "margin", "size_jitter", "seed"
        }
        assert "count" in LayoutConfig(type="random").layout_kwargs()
        explicit = LayoutConfig(type="explicit", positions=[[0.5, 0.5]], sizes=[0.01])
        assert explicit.layout_kwargs() == {"positions": [[0.5, 0.5]], "sizes": [0.01]}

    def test_stimulus_kwargs_per_type(self):
        bar = StimulusConfig(type="moving_bar").stimulus_kwargs()
        assert "speed" in bar and "center" not in bar
        flash = StimulusConfig(type="flash").stimulus_kwargs()
        assert flash["on_frames"] == 10 and "width" not in flash
        blob = StimulusConfig(type="gaussian").stimulus_kwargs()
        assert "on_frames" not in blob and blob["sigma"] == 0.1


class TestSimulatorConfig:
    """Tests for the top-level config."""

    def test_yaml_round_trip(self):
        config = SimulatorConfig(
            habituation=HabituationConfig(input_effect=1.0),
            gaze=GazeConfig(gaze_assisted=True),
            display=DisplayConfig(resolution=[64, 48], spread_backend="reference"),
            layout=LayoutConfig(type="random", count=10, seed=1),
            metadata={"name": "round-trip"},
        )

        restored = SimulatorConfig.from_yaml(config.to_yaml())

        assert restored.to_dict() == config.to_dict()

    def test_missing_sections_use_defaults(self):
        config = SimulatorConfig.from_dict({"display": {"resolution": [10, 10]}})
        assert config.habituation == HabituationConfig()
        assert config.layout.type == "grid"

    def test_from_yaml_requires_mapping(self):
        with pytest.raises(ConfigurationError, match="dict"):
            SimulatorConfig.from_yaml("- just\n- a list\n")

    def test_default_config_is_valid(self):
        SimulatorConfig().validate()

    @pytest.mark.parametrize(
        "resolution",
        [[0, 10], [10, -1], [10], [10.5, 10]],
    )
    def test_bad_resolution(self, resolution):
        config = SimulatorConfig(display=DisplayConfig(resolution=resolution))
        with pytest.raises(ConfigurationError, match="resolution"):
            config.validate()

    def test_bad_policy(self):
        config = SimulatorConfig(display=DisplayConfig(sampling_policy="mirror"))
        with pytest.raises(ConfigurationError, match="sampling_policy"):
            config.validate()

    def test_bad_spread_policy(self):
        config = SimulatorConfig(display=DisplayConfig(spread_policy="wrap"))
        with pytest.raises(ConfigurationError, match="spread_policy"):
            config.validate()

    def test_bad_gaze_shape(self):
        config = SimulatorConfig(gaze=GazeConfig(eye_center=[[0.5, 0.5]]))
        with pytest.raises(ConfigurationError, match="eye_center"):
            config.validate()

    def test_explicit_layout_mismatch(self):
        config = SimulatorConfig(
            layout=LayoutConfig(type="explicit", positions=[[0.5, 0.5]], sizes=[])
        )
        with pytest.raises(ConfigurationError, match="sizes"):
            config.validate()

    def test_decay_outside_unit_interval_warns(self):
        config = SimulatorConfig(habituation=HabituationConfig(trace_decay=1.2))
        with pytest.warns(UserWarning, match="trace_decay"):
            config.validate()

    def test_decay_warning_does_not_raise(self):
        config = SimulatorConfig.from_dict({"habituation": {"trace_decay": 1.5}})
        with pytest.warns(UserWarning, match="trace_decay=1.5"):
            config.validate()

    def test_check_decays_on_section(self, recwarn):
        HabituationConfig().check_decays()
        assert len(recwarn) == 0
        with pytest.warns(UserWarning, match="intensity_decay"):
            HabituationConfig(intensity_decay=-0.1).check_decays()

    @pytest.mark.parametrize("frames", [0, -3])
    def test_non_positive_frames(self, frames):
        config = SimulatorConfig(stimulus=StimulusConfig(frames=frames))
        with pytest.raises(ConfigurationError, match="stimulus.frames"):
            config.validate()

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestYamlUtils:
    """Tests for duplicate-key aware YAML loading."""

    def test_load_yaml(self):
        assert load_yaml("a: 1\nb: [1, 2]\n") == {"a": 1, "b": [1, 2]}

    def test_duplicate_key_rejected(self):
        text = "habituation:\n  input_effect: 1.0\n  input_effect: 2.0\n"
        with pytest.raises(ValueError, match="Duplicate key 'input_effect'"):
            load_yaml(text)

    def test_load_config_file(self, config_file):
        data = load_config_file(config_file)
        assert data["display"]["resolution"] == [32, 24]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config_file(tmp_path / "missing.yml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="Empty or invalid"):
            load_config_file(path)

    def test_safe_loader(self):
        with pytest.raises(yaml.YAMLError):
            load_yaml("!!python/object/apply:os.system ['true']")
