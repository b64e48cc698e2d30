"""
Configuration loading and management.
"""

from pathlib import Path
from typing import Any, Dict
import yaml

PACKAGED_CONFIG_DIR = Path(__file__).parent.parent / "config"
DEFAULT_RULES_NAME = "default_rules"


class ConfigLoader:
    """Load YAML rule tables from a config directory."""

    def __init__(self, config_dir: Path):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing YAML config files
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise FileNotFoundError(f"Config directory not found: {config_dir}")

    def load(self, config_name: str) -> Dict[str, Any]:
        """
        Load a YAML configuration file.

        Args:
            config_name: Name of config file (without .yaml extension)

        Returns:
            Dictionary containing configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file does not hold a mapping at the top level
            yaml.YAMLError: If config file is invalid
        """
        config_path = self.config_dir / f"{config_name}.yaml"

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            config = yaml.safe_load(f)

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        return config

    def load_all(self) -> Dict[str, Dict[str, Any]]:
        """
        Load all configuration files.

        Returns:
            Dictionary mapping config names to their contents
        """
        configs = {}

        for config_file in sorted(self.config_dir.glob("*.yaml")):
            config_name = config_file.stem
            configs[config_name] = self.load(config_name)

        return configs


def load_config(config_dir: Path, config_name: str) -> Dict[str, Any]:
    """
    Convenience function to load a single config file.

    Args:
        config_dir: Directory containing config files
        config_name: Name of config file (without .yaml extension)

    Returns:
        Dictionary containing configuration
    """
    loader = ConfigLoader(config_dir)
    return loader.load(config_name)


def load_packaged_rules() -> Dict[str, Any]:
    """Load the rule tables shipped inside the package."""
    return load_config(PACKAGED_CONFIG_DIR, DEFAULT_RULES_NAME)
