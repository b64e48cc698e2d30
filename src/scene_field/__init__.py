"""
Scene Field

Deterministic procedural scene layout: places typed decorative elements
on a square-cell grid from a control signal, a viewport and a mode.
"""

__version__ = "0.1.0"

# Lazy imports keep `import scene_field` cheap for tooling that only needs
# the version or a single submodule
__all__ = [
    "__version__",
    "compose_field",
    "ComposeResult",
    "EngineConfig",
    "EngineContext",
    "SceneEngine",
    "PoolItem",
    "PlacementConfig",
    "SceneRules",
    "load_default_rules",
]


def __getattr__(name):
    """Lazy import to avoid loading all modules at once."""
    if name in ("compose_field", "ComposeResult", "EngineConfig", "EngineContext", "SceneEngine"):
        from scene_field import pipeline
        return getattr(pipeline, name)
    elif name == "PoolItem":
        from scene_field.pool import PoolItem
        return PoolItem
    elif name == "PlacementConfig":
        from scene_field.placement import PlacementConfig
        return PlacementConfig
    elif name == "SceneRules":
        from scene_field.rules import SceneRules
        return SceneRules
    elif name == "load_default_rules":
        from scene_field.rules import load_default_rules
        return load_default_rules
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
