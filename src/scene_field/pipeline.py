"""
Scene composition pipeline - coordinates all modules.
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .allocation import reallocate_categories
from .catalog import DeviceClass, SceneMode, curve_set_for_mode, resolve_mode
from .grid import GridCache, GridLayout, build_layout, round_half_up
from .placement import OccupancyPlacer, PlacedItem, PlacementConfig
from .planner import assign_variants
from .pool import PoolItem, device_class, ensure_pool_size, make_default_pool, target_pool_size
from .postfix import ensure_landmark
from .quota import category_targets, clamp01
from .rules import GridSpec, SceneRules, load_default_rules, load_rules
from .utils.hashing import default_salt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Engine-level configuration."""

    placement: PlacementConfig = field(default_factory=PlacementConfig)
    rules_path: Optional[Path] = None
    salt: Optional[int] = None

    @classmethod
    def from_dict(cls, config: dict) -> "EngineConfig":
        """Create config from dictionary."""
        rules_path = config.get("rules_path")
        salt = config.get("salt")
        return cls(
            placement=PlacementConfig.from_dict(config.get("placement") or {}),
            rules_path=Path(rules_path) if rules_path else None,
            salt=int(salt) if salt is not None else None,
        )

    def load_rules(self) -> SceneRules:
        if self.rules_path is None:
            return load_default_rules()
        return load_rules(self.rules_path)


@dataclass(frozen=True)
class ComposeMeta:
    device: DeviceClass
    mode: SceneMode
    grid_spec: GridSpec
    rows: int
    cols: int
    cell: float
    used_rows: int
    salt: int
    dropped: Tuple[int, ...] = ()


@dataclass
class ComposeResult:
    placed: List[PlacedItem]
    next_pool: List[PoolItem]
    meta: ComposeMeta

    def to_dict(self) -> dict:
        """Plain JSON-ready representation."""
        return {
            "placed": [
                {
                    "id": p.id,
                    "x": p.x,
                    "y": p.y,
                    "variant": p.variant.value if p.variant else None,
                    "footprint": asdict(p.footprint),
                }
                for p in self.placed
            ],
            "next_pool": [{"id": p.id, "category": p.category.value} for p in self.next_pool],
            "meta": {
                "device": self.meta.device.value,
                "mode": self.meta.mode.value,
                "rows": self.meta.rows,
                "cols": self.meta.cols,
                "cell": self.meta.cell,
                "used_rows": self.meta.used_rows,
                "salt": self.meta.salt,
                "dropped": list(self.meta.dropped),
            },
        }


def compose_field(
    signal: Optional[float],
    width: float,
    height: float,
    mode: Union[SceneMode, str],
    pool: Sequence[PoolItem],
    salt: Optional[int] = None,
    rules: Optional[SceneRules] = None,
    config: Optional[EngineConfig] = None,
    cache: Optional[GridCache] = None,
) -> ComposeResult:
    """
    Compose one scene.

    Args:
        signal: Control signal in [0, 1]; None means 0.5
        width: Viewport width in pixels
        height: Viewport height in pixels
        mode: Scene mode
        pool: Current pool; only ids and categories are read
        salt: Jitter salt; derived from the grid shape when omitted
        rules: Rule tables (packaged defaults when omitted)
        config: Engine configuration
        cache: Optional grid cache owned by the caller

    Returns:
        ComposeResult with placements, the next pool (categories kept,
        everything else cleared) and metadata. ``pool`` is not modified.
    """
    config = config or EngineConfig()
    rules = rules or load_default_rules()
    mode = SceneMode(mode)

    w = round_half_up(width)
    h = round_half_up(height)
    t = clamp01(signal)

    device = device_class(w)
    spec = rules.grid_spec(mode, device)
    layout: GridLayout = cache.get(w, h, mode, spec) if cache is not None else build_layout(w, h, spec)
    geo = layout.geometry

    if salt is None:
        salt = config.salt if config.salt is not None else default_salt(geo.rows, geo.cols)

    meta = ComposeMeta(
        device=device,
        mode=mode,
        grid_spec=spec,
        rows=geo.rows,
        cols=geo.cols,
        cell=geo.cell,
        used_rows=geo.used_rows,
        salt=salt,
    )

    if geo.is_degenerate:
        logger.info(f"Degenerate grid for {w}x{h} ({mode.value}); nothing placed")
        return ComposeResult(placed=[], next_pool=[p.cleared() for p in pool], meta=meta)

    working = [p.cleared() for p in pool]

    targets = category_targets(t, len(working), rules)
    categories = reallocate_categories([p.category for p in working], targets)
    working = [p.with_category(c) for p, c in zip(working, categories)]

    assigned = assign_variants(working, t, salt, curve_set_for_mode(mode), rules)

    placer = OccupancyPlacer(
        geo,
        layout.mask,
        device,
        salt,
        questionnaire=mode == SceneMode.QUESTIONNAIRE,
        overlay=mode == SceneMode.OVERLAY,
        rules=rules,
        config=config.placement,
    )
    result = placer.place_all(assigned)

    placed = list(result.placed)
    ensure_landmark(placed, t, geo.used_rows, device, rules)

    logger.debug(
        f"Composed {len(placed)}/{len(pool)} items on {geo.rows}x{geo.cols} grid "
        f"({device.value}, {mode.value}, salt={salt})"
    )

    meta = replace(meta, dropped=tuple(result.dropped))
    return ComposeResult(placed=placed, next_pool=[p.cleared() for p in assigned], meta=meta)


# ============================================================================
# Engines
# ============================================================================


class SceneEngine:
    """
    Owns one host's pool, rules, config and grid cache.
    """

    def __init__(
        self,
        host_id: str,
        base_mode: SceneMode = SceneMode.START,
        rules: Optional[SceneRules] = None,
        config: Optional[EngineConfig] = None,
        pool: Optional[Sequence[PoolItem]] = None,
    ):
        """
        Initialize engine.

        Args:
            host_id: Host identifier
            base_mode: Mode used when no override is given
            rules: Rule tables
            config: Engine configuration
            pool: Initial pool (empty when omitted)
        """
        self.host_id = host_id
        self.base_mode = SceneMode(base_mode)
        self.config = config or EngineConfig()
        self.rules = rules or self.config.load_rules()
        self.cache = GridCache()
        self.pool: List[PoolItem] = list(pool) if pool is not None else []
        self.last_result: Optional[ComposeResult] = None

        logger.info(f"Scene engine '{host_id}' initialized (base mode {self.base_mode.value})")

    def resolve_mode(self, mode: Optional[SceneMode] = None, questionnaire_open: bool = False) -> SceneMode:
        if mode is not None:
            return SceneMode(mode)
        return resolve_mode(questionnaire_open, overlay=self.base_mode == SceneMode.OVERLAY)

    def compose(
        self,
        signal: Optional[float],
        width: float,
        height: float,
        mode: Optional[SceneMode] = None,
        questionnaire_open: bool = False,
    ) -> ComposeResult:
        """Resize the pool for the mode and viewport, then compose."""
        mode = self.resolve_mode(mode, questionnaire_open)
        desired = target_pool_size(mode, round_half_up(width), self.rules)
        if not self.pool:
            self.pool = make_default_pool(desired)
        else:
            self.pool = ensure_pool_size(self.pool, desired)

        result = compose_field(
            signal,
            width,
            height,
            mode,
            self.pool,
            rules=self.rules,
            config=self.config,
            cache=self.cache,
        )
        self.pool = result.next_pool
        self.last_result = result
        return result

    def reset(self) -> None:
        self.pool = []
        self.cache.clear()
        self.last_result = None


class EngineContext:
    """
    Registry of scene engines keyed by host id.

    Callers create one context and pass it where it is needed; engines are
    never held in module state.
    """

    def __init__(self, rules: Optional[SceneRules] = None, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.rules = rules or self.config.load_rules()
        self._engines: Dict[str, SceneEngine] = {}

    def get_or_create(self, host_id: str, base_mode: Optional[SceneMode] = None) -> SceneEngine:
        """
        Return the engine for a host, creating it on first use.

        The base mode comes from ``base_mode``, else the host table in the
        rules, else the start scene.
        """
        engine = self._engines.get(host_id)
        if engine is not None:
            return engine

        if base_mode is None:
            base_mode = self.rules.hosts.get(host_id, SceneMode.START)
        engine = SceneEngine(host_id, base_mode, rules=self.rules, config=self.config)
        self._engines[host_id] = engine
        return engine

    def drop(self, host_id: str) -> bool:
        """Forget a host's engine. Returns False if it was not registered."""
        engine = self._engines.pop(host_id, None)
        if engine is None:
            return False
        engine.reset()
        logger.info(f"Scene engine '{host_id}' dropped")
        return True

    def hosts(self) -> List[str]:
        return list(self._engines)

    def __contains__(self, host_id: str) -> bool:
        return host_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)
