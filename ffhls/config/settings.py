# ffhls/config/settings.py
"""
Configuration management with validation
"""

import yaml
from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass, field, fields, asdict

from ffhls.quality.catalog import DEFAULT_CATALOG, QualityCatalog, load_catalog
from ffhls.utils.exceptions import ConfigurationError


@dataclass
class Settings:
    """Main application settings"""

    # Paths
    input_folder: Path = Path("video")
    output_path: Path = Path("output")

    # Behavior
    input_cleanup: bool = False

    # Qualities
    catalog_file: Optional[Path] = None
    default_qualities: List[str] = field(default_factory=lambda: [
        "120", "240", "360", "480", "720"
    ])

    # Tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Notifications
    webhook_url: Optional[str] = None

    # Logging
    log_dir: Path = Path("logs")

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from a YAML file, falling back to defaults"""

        if config_path is None:
            config_path = Path("config/default.yaml")
            if not config_path.exists():
                return cls()
        elif not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {config_path}")

        known = {f.name for f in fields(cls)}
        unknown = set(config_data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )

        # Convert Path strings
        for key in ('input_folder', 'output_path', 'log_dir'):
            if config_data.get(key):
                config_data[key] = Path(config_data[key])
        if config_data.get('catalog_file'):
            config_data['catalog_file'] = Path(config_data['catalog_file'])

        try:
            settings = cls(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        settings.validate()
        return settings

    def validate(self):
        """Validate all settings"""
        if not str(self.input_folder).strip():
            raise ConfigurationError("input_folder must not be empty")

        if not str(self.output_path).strip():
            raise ConfigurationError("output_path must not be empty")

        if not isinstance(self.input_cleanup, bool):
            raise ConfigurationError(
                f"input_cleanup must be true or false, got {self.input_cleanup!r}"
            )

        if not isinstance(self.default_qualities, list) or not all(
            isinstance(q, str) for q in self.default_qualities
        ):
            raise ConfigurationError("default_qualities must be a list of strings")

        if not self.ffmpeg_path or not self.ffprobe_path:
            raise ConfigurationError("ffmpeg_path and ffprobe_path are required")

        if self.catalog_file is not None and not Path(self.catalog_file).exists():
            raise ConfigurationError(f"Catalog file not found: {self.catalog_file}")

    def catalog(self) -> QualityCatalog:
        """Quality catalog configured for this installation"""
        if self.catalog_file is None:
            return DEFAULT_CATALOG
        return load_catalog(Path(self.catalog_file))

    def save(self, path: Path):
        """Save current settings to file"""
        data = {
            key: str(value) if isinstance(value, Path) else value
            for key, value in asdict(self).items()
        }
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)
