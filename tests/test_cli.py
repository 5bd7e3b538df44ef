"""
Tests for the command-line interface.
"""

import json
import subprocess
import sys
import pytest
from pathlib import Path


class TestCLIEntryPoints:
    """Test that CLI entry points defined in pyproject.toml are importable."""

    def test_entry_point_importable(self):
        """Test that the CLI entry point module and function exist."""
        from knobgen.cli.generate import main
        assert callable(main)

    def test_entry_point_via_subprocess(self):
        """Test entry point works when invoked as module."""
        result = subprocess.run(
            [sys.executable, "-m", "knobgen.cli.generate", "--help"],
            capture_output=True,
            text=True
        )
        assert result.returncode == 0


class TestCLIBasic:
    """Basic CLI tests."""

    def test_cli_help(self):
        """Test that --help lists the output options."""
        result = subprocess.run(
            [sys.executable, "-m", "knobgen.cli.generate", "--help"],
            capture_output=True,
            text=True
        )
        assert result.returncode == 0
        assert "--step" in result.stdout
        assert "--save-json" in result.stdout

    def test_cli_missing_file(self):
        """Test error handling for missing input file."""
        result = subprocess.run(
            [sys.executable, "-m", "knobgen.cli.generate", "nonexistent.json", "--no-save"],
            capture_output=True,
            text=True
        )
        assert result.returncode != 0
        assert "Error loading configuration" in result.stderr

    def test_cli_invalid_json(self, tmp_path):
        """Test error handling for invalid JSON."""
        invalid_file = tmp_path / "invalid.json"
        invalid_file.write_text("not valid json {")

        result = subprocess.run(
            [sys.executable, "-m", "knobgen.cli.generate", str(invalid_file), "--no-save"],
            capture_output=True,
            text=True
        )
        assert result.returncode != 0

    def test_cli_missing_body(self, tmp_path):
        """Test error handling for a configuration without a body."""
        config_file = tmp_path / "nobody.json"
        config_file.write_text(json.dumps({"surface": {}}))

        result = subprocess.run(
            [sys.executable, "-m", "knobgen.cli.generate", str(config_file), "--no-save"],
            capture_output=True,
            text=True
        )
        assert result.returncode != 0
        assert "body" in result.stderr


@pytest.mark.slow
class TestCLIGeneration:
    """Tests for geometry generation via CLI."""

    def test_cli_generate_stl(self, temp_json_file, tmp_path):
        """Test generating the default STL."""
        output_dir = tmp_path / "output"

        result = subprocess.run(
            [
                sys.executable, "-m", "knobgen.cli.generate",
                str(temp_json_file),
                "-o", str(output_dir),
            ],
            capture_output=True,
            text=True,
            timeout=300
        )

        assert result.returncode == 0, result.stderr
        assert "Knob summary" in result.stdout
        stl_file = output_dir / "knob.stl"
        assert stl_file.exists()
        assert stl_file.read_text().startswith("solid")

    def test_cli_step_and_name(self, temp_json_file, tmp_path):
        """Test STEP output with a custom file name."""
        output_dir = tmp_path / "output"

        result = subprocess.run(
            [
                sys.executable, "-m", "knobgen.cli.generate",
                str(temp_json_file),
                "-o", str(output_dir),
                "--name", "volume_knob",
                "--step",
                "--no-stl",
            ],
            capture_output=True,
            text=True,
            timeout=300
        )

        assert result.returncode == 0, result.stderr
        assert (output_dir / "volume_knob.step").exists()
        assert not (output_dir / "volume_knob.stl").exists()

    def test_cli_save_json(self, temp_json_file, tmp_path):
        """Test saving the normalized configuration."""
        json_out = tmp_path / "full.json"

        result = subprocess.run(
            [
                sys.executable, "-m", "knobgen.cli.generate",
                str(temp_json_file),
                "--no-save",
                "--save-json", str(json_out),
            ],
            capture_output=True,
            text=True,
            timeout=300
        )

        assert result.returncode == 0, result.stderr
        data = json.loads(json_out.read_text())
        assert data["body"]["height"] == 30
        assert data["surface"]["knurling"][0]["rise"] == 0.9
