"""Integration tests for the phosphenesim command-line interface."""

import pytest
import torch

from phosphenesim.cli import build_config, create_parser, main


class TestCLIParser:
    """Tests for argument parsing."""

    def test_run_arguments(self):
        args = create_parser().parse_args(
            ["run", "config.yml", "--frames", "5", "--backend", "reference", "--quiet"]
        )
        assert args.command == "run"
        assert args.frames == 5
        assert args.backend == "reference"
        assert args.quiet is True

    def test_invalid_backend_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["run", "config.yml", "--backend", "opencl"])

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out


class TestCLICommands:
    """End-to-end command execution."""

    def test_validate(self, config_file, capsys):
        assert main(["validate", str(config_file)]) == 0
        out = capsys.readouterr().out
        assert "Configuration is valid" in out
        assert "Phosphenes: 16" in out

    def test_validate_invalid_config(self, tmp_path, capsys):
        path = tmp_path / "bad.yml"
        path.write_text("display:\n  resolution: [0, 10]\n", encoding="utf-8")

        assert main(["validate", str(path)]) == 1
        assert "resolution" in capsys.readouterr().err

    def test_validate_missing_file(self, tmp_path):
        assert main(["validate", str(tmp_path / "missing.yml")]) == 1

    def test_run_prints_summary(self, config_file, capsys):
        assert main(["run", str(config_file), "--frames", "2", "--quiet"]) == 0
        assert "Simulation completed successfully" in capsys.readouterr().out

    def test_run_zero_frames_rejected(self, config_file, capsys):
        assert main(["run", str(config_file), "--frames", "0", "--quiet"]) == 1
        assert "stimulus.frames" in capsys.readouterr().err

    def test_frames_override_applied(self, config_file):
        args = create_parser().parse_args(["run", str(config_file), "--frames", "0"])
        assert build_config(args).stimulus.frames == 0

    def test_run_saves_checkpoint(self, config_file, tmp_path):
        output = tmp_path / "result.pt"

        code = main([
            "run", str(config_file), "--frames", "3", "--quiet",
            "--backend", "reference", "--output", str(output),
        ])

        assert code == 0
        saved = torch.load(output, weights_only=False)
        assert saved["results"]["render"].shape == (3, 2, 24, 32)
        assert saved["simulator_info"]["spread_backend"] == "reference"
        assert saved["config"]["stimulus"]["frames"] == 3

    def test_run_saves_png(self, config_file, tmp_path):
        output = tmp_path / "frame.png"

        assert main(["run", str(config_file), "--frames", "2", "--quiet",
                     "--output", str(output)]) == 0
        assert output.exists()
        assert output.stat().st_size > 0

    def test_run_duplicate_key(self, tmp_path, capsys):
        path = tmp_path / "dup.yml"
        path.write_text("display:\n  device: cpu\n  device: cpu\n", encoding="utf-8")

        assert main(["run", str(path), "--quiet"]) == 1
        assert "Duplicate key" in capsys.readouterr().err

    def test_list_components(self, capsys):
        assert main(["list-components"]) == 0
        out = capsys.readouterr().out
        names = (
            "habituation", "grid", "explicit", "moving_bar", "flash", "vectorized", "reference"
        )
        for name in names:
            assert f"- {name}" in out
