"""
Utility modules for scene composition.
"""

from scene_field.utils.config import load_config, load_packaged_rules, ConfigLoader
from scene_field.utils.logging import setup_logging
from scene_field.utils.hashing import hash32, rand01_keyed, to_int32, default_salt
from scene_field.utils.validation import validate_layout, validate_pool

__all__ = [
    "load_config",
    "load_packaged_rules",
    "ConfigLoader",
    "setup_logging",
    "hash32",
    "rand01_keyed",
    "to_int32",
    "default_salt",
    "validate_layout",
    "validate_pool",
]
