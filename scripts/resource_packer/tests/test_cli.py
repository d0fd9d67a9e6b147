"""
Integration tests for the resource packer CLI.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

from rich.console import Console
from typer.testing import CliRunner

from .. import cli
from ..cli import app
from .helpers import write_file, write_image


class TestCLIIntegration:
    """Test CLI commands end to end."""

    def setup_method(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.original_cwd = os.getcwd()
        os.chdir(self.temp_dir)

        # Wide console so tables are not wrapped
        self.console_patch = patch.object(cli, "console", Console(width=200))
        self.console_patch.start()

        write_image(Path("raw") / "ui.pack" / "button.png", (8, 8))
        write_file(Path("raw") / "notes.ignore.txt")
        write_file(Path("raw") / "data.txt")

    def teardown_method(self):
        self.console_patch.stop()
        os.chdir(self.original_cwd)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_pack(self):
        result = self.runner.invoke(app, ["pack", "raw", "out"])

        assert result.exit_code == 0, result.output
        assert "Packing Summary" in result.output
        assert "PackTask" in result.output
        assert Path("out/ui/ui.png").exists()
        assert Path("out/data.txt").exists()
        assert not Path("out/notes.txt").exists()

    def test_pack_without_summary(self):
        result = self.runner.invoke(app, ["pack", "raw", "out", "--no-summary"])

        assert result.exit_code == 0
        assert "Packing Summary" not in result.output
        assert "Packing complete" in result.output

    def test_pack_reports_errors(self):
        write_image(Path("raw") / "logo.0x0.png")

        result = self.runner.invoke(app, ["pack", "raw", "out"])

        assert result.exit_code == 0
        assert "Finished with 1 errors" in result.output
        assert "ResizeTask" in result.output

    def test_pack_missing_input(self):
        result = self.runner.invoke(app, ["pack", "missing", "out"])

        assert result.exit_code == 1
        assert "Input directory not found" in result.output

    def test_pack_output_inside_input(self):
        result = self.runner.invoke(app, ["pack", "raw", "raw/out"])

        assert result.exit_code == 1
        assert "Packing failed" in result.output

    def test_pack_uses_config_file(self):
        Path("resource_packer.toml").write_text("[atlas]\nformat = \"json\"\n")

        result = self.runner.invoke(app, ["pack", "raw", "out"])

        assert result.exit_code == 0
        assert "Using configuration: resource_packer.toml" in result.output
        assert Path("out/ui/ui.atlas").read_text().lstrip().startswith("{")

    def test_pack_missing_config_file(self):
        result = self.runner.invoke(app, ["pack", "raw", "out", "--config", "missing.toml"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_flags(self):
        result = self.runner.invoke(app, ["flags", "Body.24.outline 2 000000.bg#FF000080.ttf"])

        assert result.exit_code == 0
        assert "Base name: Body" in result.output
        assert "Output name: Body.ttf" in result.output
        assert "size" in result.output
        assert "outline" in result.output
        assert "background" in result.output

    def test_flags_reports_invalid_values(self):
        result = self.runner.invoke(app, ["flags", "icon.bg#12345.png"])

        assert result.exit_code == 0
        assert "Invalid flag 'bg#12345'" in result.output

    def test_flags_directory(self):
        result = self.runner.invoke(app, ["flags", "ui.pack", "--directory"])

        assert result.exit_code == 0
        assert "Extension: -" in result.output
        assert "keyword" in result.output

    def test_tasks(self):
        result = self.runner.invoke(app, ["tasks"])

        assert result.exit_code == 0
        assert result.output.index("IgnoreTask") < result.output.index("CreateFontsTask")
        assert "RemoveEmptyDirectoriesTask" in result.output

    def test_config_show(self):
        result = self.runner.invoke(app, ["config", "--show"])

        assert result.exit_code == 0
        assert "Atlas Padding" in result.output
        assert "Using default configuration" in result.output

    def test_config_validate_rejects_bad_values(self):
        Path("bad.toml").write_text("[output]\ncompression_level = 12\n")

        result = self.runner.invoke(app, ["config", "--validate", "--config", "bad.toml"])

        assert result.exit_code == 1
        assert "compression_level must be between 0 and 9" in result.output

    def test_config_validate_accepts_defaults(self):
        result = self.runner.invoke(app, ["config", "--validate"])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_config_env_vars(self):
        result = self.runner.invoke(app, ["config", "--env-vars"])

        assert result.exit_code == 0
        assert "RESOURCE_PACKER_ATLAS_PADDING" in result.output

    def test_config_env_overrides_are_reported(self):
        result = self.runner.invoke(app, ["config", "--show"], env={"RESOURCE_PACKER_ATLAS_PADDING": "7"})

        assert result.exit_code == 0
        assert "Environment overrides applied: 1 variables" in result.output

    def test_version(self):
        result = self.runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "Resource Packer" in result.output
        assert "Pillow" in result.output
