"""
Tests for configuration loading.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ..config import ENV_VARS, PackerConfig


class TestPackerConfig(unittest.TestCase):
    """Test file loading, environment overrides and validation."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        config = PackerConfig()

        self.assertEqual(config.atlas_padding, 2)
        self.assertEqual(config.atlas_max_size, (2048, 2048))
        self.assertEqual(config.font_page_size, (1024, 1024))
        self.assertEqual(config.atlas_format, "toml")
        self.assertEqual(config.validate(), [])

    def test_from_toml(self):
        path = self.temp_dir / "resource_packer.toml"
        path.write_text(
            "[atlas]\n"
            "padding = 4\n"
            "max_size = [512, 256]\n"
            "format = \"json\"\n"
            "\n"
            "[fonts]\n"
            "page_size = [256, 256]\n"
            "\n"
            "[run]\n"
            "log_level = \"DEBUG\"\n"
        )

        config = PackerConfig.from_file(path)

        self.assertEqual(config.atlas_padding, 4)
        self.assertEqual(config.atlas_max_size, (512, 256))
        self.assertEqual(config.atlas_format, "json")
        self.assertEqual(config.font_page_size, (256, 256))
        self.assertEqual(config.log_level, "DEBUG")
        self.assertTrue(config.skip_hidden)

    def test_from_json(self):
        path = self.temp_dir / "resource_packer.json"
        path.write_text(json.dumps({"output": {"compression_level": 9}, "run": {"skip_hidden": False}}))

        config = PackerConfig.from_file(path)

        self.assertEqual(config.compression_level, 9)
        self.assertFalse(config.skip_hidden)

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            PackerConfig.from_file(self.temp_dir / "missing.toml")

    def test_unsupported_format_raises(self):
        path = self.temp_dir / "config.yaml"
        path.write_text("atlas: {}")

        with self.assertRaises(ValueError):
            PackerConfig.from_file(path)

    def test_environment_overrides(self):
        env = {
            "RESOURCE_PACKER_ATLAS_PADDING": "0",
            "RESOURCE_PACKER_ATLAS_MAX_WIDTH": "128",
            "RESOURCE_PACKER_ATLAS_MAX_HEIGHT": "64",
            "RESOURCE_PACKER_ATLAS_POWER_OF_TWO": "false",
            "RESOURCE_PACKER_SKIP_HIDDEN": "no",
            "RESOURCE_PACKER_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env):
            config = PackerConfig.default()

        self.assertEqual(config.atlas_padding, 0)
        self.assertEqual(config.atlas_max_size, (128, 64))
        self.assertFalse(config.atlas_power_of_two)
        self.assertFalse(config.skip_hidden)
        self.assertEqual(config.log_level, "DEBUG")

    def test_partial_size_override_is_ignored(self):
        with patch.dict(os.environ, {"RESOURCE_PACKER_FONT_PAGE_WIDTH": "64"}):
            config = PackerConfig.default()

        self.assertEqual(config.font_page_size, (1024, 1024))

    def test_validate(self):
        config = PackerConfig(atlas_padding=-1, atlas_format="xml", compression_level=10,
                              font_page_size=(0, 10), log_level="LOUD")

        errors = config.validate()

        self.assertEqual(len(errors), 5)
        self.assertIn("atlas_format must be toml or json", errors)

    def test_env_var_table_covers_prefix(self):
        for name, description, example in ENV_VARS:
            self.assertTrue(name.startswith("RESOURCE_PACKER_"))
            self.assertTrue(description)


if __name__ == '__main__':
    unittest.main()
