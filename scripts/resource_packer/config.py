"""
Configuration management for the resource packer.
Supports TOML and JSON configuration files with validation.
"""

import os
import json
import tomllib
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Union
from pathlib import Path

ENV_PREFIX = "RESOURCE_PACKER_"


@dataclass
class PackerConfig:
    """Main configuration class for the resource packer."""

    # Atlas settings
    atlas_padding: int = 2
    atlas_max_size: tuple[int, int] = (2048, 2048)
    atlas_power_of_two: bool = True
    atlas_format: str = "toml"

    # Font settings
    font_page_size: tuple[int, int] = (1024, 1024)

    # Output settings
    compression_level: int = 6

    # Run settings
    skip_hidden: bool = True
    staging_dir: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "PackerConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            with open(config_path, 'rb') as f:
                data = tomllib.load(f)
        elif config_path.suffix.lower() == '.json':
            with open(config_path, 'r') as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "PackerConfig":
        """Create configuration from dictionary."""
        config_data = {}

        if 'atlas' in data:
            atlas = data['atlas']
            config_data['atlas_padding'] = atlas.get('padding', 2)
            if 'max_size' in atlas:
                config_data['atlas_max_size'] = tuple(atlas['max_size'])
            config_data['atlas_power_of_two'] = atlas.get('power_of_two', True)
            config_data['atlas_format'] = atlas.get('format', 'toml')

        if 'fonts' in data:
            fonts = data['fonts']
            if 'page_size' in fonts:
                config_data['font_page_size'] = tuple(fonts['page_size'])

        if 'output' in data:
            config_data['compression_level'] = data['output'].get('compression_level', 6)

        if 'run' in data:
            run = data['run']
            config_data['skip_hidden'] = run.get('skip_hidden', True)
            config_data['staging_dir'] = run.get('staging_dir')
            config_data['log_level'] = run.get('log_level', 'INFO')

        return cls(**config_data)

    @classmethod
    def default(cls) -> "PackerConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "PackerConfig") -> "PackerConfig":
        """Apply environment variable overrides to configuration."""

        def env(name: str) -> Optional[str]:
            return os.getenv(ENV_PREFIX + name)

        def flag(value: str) -> bool:
            return value.lower() in ('1', 'true', 'yes', 'on')

        if env('ATLAS_PADDING'):
            config.atlas_padding = int(env('ATLAS_PADDING'))

        if env('ATLAS_MAX_WIDTH') and env('ATLAS_MAX_HEIGHT'):
            config.atlas_max_size = (int(env('ATLAS_MAX_WIDTH')), int(env('ATLAS_MAX_HEIGHT')))

        if env('ATLAS_POWER_OF_TWO'):
            config.atlas_power_of_two = flag(env('ATLAS_POWER_OF_TWO'))

        if env('ATLAS_FORMAT'):
            config.atlas_format = env('ATLAS_FORMAT')

        if env('FONT_PAGE_WIDTH') and env('FONT_PAGE_HEIGHT'):
            config.font_page_size = (int(env('FONT_PAGE_WIDTH')), int(env('FONT_PAGE_HEIGHT')))

        if env('COMPRESSION_LEVEL'):
            config.compression_level = int(env('COMPRESSION_LEVEL'))

        if env('SKIP_HIDDEN'):
            config.skip_hidden = flag(env('SKIP_HIDDEN'))

        if env('STAGING_DIR'):
            config.staging_dir = env('STAGING_DIR')

        if env('LOG_LEVEL'):
            config.log_level = env('LOG_LEVEL').upper()

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.atlas_padding < 0:
            errors.append("atlas_padding cannot be negative")

        if self.atlas_max_size[0] <= 0 or self.atlas_max_size[1] <= 0:
            errors.append("atlas_max_size must have positive dimensions")

        if self.font_page_size[0] <= 0 or self.font_page_size[1] <= 0:
            errors.append("font_page_size must have positive dimensions")

        if self.atlas_format.lower() not in ['toml', 'json']:
            errors.append("atlas_format must be toml or json")

        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if self.log_level.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR']:
            errors.append("log_level must be DEBUG, INFO, WARNING or ERROR")

        return errors


ENV_VARS = [
    ("RESOURCE_PACKER_ATLAS_PADDING", "Padding between atlas sprites in pixels", "2"),
    ("RESOURCE_PACKER_ATLAS_MAX_WIDTH", "Maximum atlas width", "2048"),
    ("RESOURCE_PACKER_ATLAS_MAX_HEIGHT", "Maximum atlas height", "2048"),
    ("RESOURCE_PACKER_ATLAS_POWER_OF_TWO", "Round atlas sizes to powers of two (true/false)", "true"),
    ("RESOURCE_PACKER_ATLAS_FORMAT", "Atlas frame map format (toml/json)", "toml"),
    ("RESOURCE_PACKER_FONT_PAGE_WIDTH", "Font page width", "1024"),
    ("RESOURCE_PACKER_FONT_PAGE_HEIGHT", "Font page height", "1024"),
    ("RESOURCE_PACKER_COMPRESSION_LEVEL", "PNG compression level (0-9)", "6"),
    ("RESOURCE_PACKER_SKIP_HIDDEN", "Skip hidden files during discovery (true/false)", "true"),
    ("RESOURCE_PACKER_STAGING_DIR", "Directory for the staging area", "build/staging"),
    ("RESOURCE_PACKER_LOG_LEVEL", "Log level", "DEBUG"),
]
