"""
Validated rule tables for the scene engine.

The YAML tables in ``config/default_rules.yaml`` are parsed into frozen
dataclasses here. Anything malformed raises ``ValueError`` at load time so
the composition path never has to second-guess its configuration.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .catalog import (
    Category,
    CurveSet,
    DeviceClass,
    SceneMode,
    Variant,
    VariantMeta,
)
from .utils.config import ConfigLoader, load_packaged_rules

logger = logging.getLogger(__name__)

# Marker for a variant cap with no upper bound (the category's sink).
UNBOUNDED = math.inf
UNBOUNDED_TOKENS = {"inf", "infinity", "unbounded"}

PERCENT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*%\s*$")

BAND_TABLES = ("base", "questionnaire", "overlay")

Margin = Union[str, float, None]
Footprint = Tuple[int, int]


# ============================================================================
# Table entries
# ============================================================================


@dataclass(frozen=True)
class CategoryAnchor:
    """Category mix ``[A, B, C, D]`` at control signal ``t``."""

    t: float
    mix: Tuple[float, ...]

    @classmethod
    def from_dict(cls, config: dict) -> "CategoryAnchor":
        t = _unit_float(config["t"], "category anchor t")
        mix = tuple(float(v) for v in config["mix"])
        if len(mix) != len(Category):
            raise ValueError(f"category anchor mix needs {len(Category)} values, got {len(mix)}")
        if any(v < 0 for v in mix):
            raise ValueError(f"category anchor mix must be non-negative: {mix}")
        if not any(mix):
            raise ValueError(f"category anchor mix at t={t} is all zero")
        return cls(t=t, mix=mix)


@dataclass(frozen=True)
class QuotaAnchor:
    """Per-variant caps at ``t``. Dict order is the declared order."""

    t: float
    limits: Dict[Variant, float]

    @classmethod
    def from_dict(cls, config: dict) -> "QuotaAnchor":
        t = _unit_float(config["t"], "quota anchor t")
        limits = {}
        for name, raw in (config.get("limits") or {}).items():
            limits[Variant(name)] = parse_limit(raw)
        return cls(t=t, limits=limits)


@dataclass(frozen=True)
class VariantEntry:
    """Declared variant of a category. Without a footprint the default table applies."""

    variant: Variant
    footprint: Optional[Footprint] = None

    @classmethod
    def from_dict(cls, config: dict) -> "VariantEntry":
        raw = config.get("footprint")
        return cls(variant=Variant(config["variant"]), footprint=parse_footprint(raw) if raw is not None else None)


@dataclass(frozen=True)
class RowRuleSpec:
    """Unparsed row rule: margins as ``"NN%"``, absolute columns or a fraction."""

    left: Margin = None
    right: Margin = None
    center: Margin = None

    @classmethod
    def from_dict(cls, config: dict) -> "RowRuleSpec":
        unknown = set(config) - {"left", "right", "center"}
        if unknown:
            raise ValueError(f"Unknown row rule keys: {sorted(unknown)}")
        return cls(
            left=_check_margin(config.get("left")),
            right=_check_margin(config.get("right")),
            center=_check_margin(config.get("center")),
        )


@dataclass(frozen=True)
class GridSpec:
    """Grid shape for one mode and device class."""

    rows: int
    use_top_ratio: float
    row_rules: Tuple[RowRuleSpec, ...] = ()

    @classmethod
    def from_dict(cls, config: dict) -> "GridSpec":
        rows = int(config["rows"])
        if rows <= 0:
            raise ValueError(f"grid rows must be positive, got {rows}")
        return cls(
            rows=rows,
            use_top_ratio=float(config.get("use_top_ratio", 1.0)),
            row_rules=tuple(RowRuleSpec.from_dict(r) for r in config.get("row_rules") or []),
        )


@dataclass(frozen=True)
class Band:
    """Vertical placement band as fractions of the used rows."""

    top_k: float
    bot_k: float

    @classmethod
    def from_value(cls, value) -> "Band":
        if isinstance(value, dict):
            return cls(top_k=float(value["top_k"]), bot_k=float(value["bot_k"]))
        top_k, bot_k = value
        return cls(top_k=float(top_k), bot_k=float(bot_k))


# ============================================================================
# Rule set
# ============================================================================


@dataclass(frozen=True)
class SceneRules:
    """All data-driven tables the engine consumes."""

    category_anchors: Tuple[CategoryAnchor, ...]
    categories: Dict[Category, Tuple[VariantEntry, ...]]
    default_footprints: Dict[Variant, Footprint]
    variant_meta: Dict[Variant, VariantMeta]
    quota_curves: Dict[CurveSet, Dict[Category, Tuple[QuotaAnchor, ...]]]
    pool_sizes: Dict[SceneMode, Dict[DeviceClass, int]]
    grid_specs: Dict[SceneMode, Dict[DeviceClass, GridSpec]]
    bands: Dict[str, Dict[DeviceClass, Dict[Variant, Band]]]
    landmark_variant: Variant = Variant.SUN
    filler_variant: Variant = Variant.CLOUDS
    signal_mapper: Tuple[Tuple[float, float], ...] = ()
    hosts: Dict[str, SceneMode] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config: dict) -> "SceneRules":
        """
        Build and validate a rule set from a parsed YAML mapping.

        Args:
            config: Mapping with the keys of ``default_rules.yaml``

        Returns:
            Validated SceneRules

        Raises:
            ValueError: If any table is missing or inconsistent
        """
        try:
            rules = cls(
                category_anchors=_parse_anchors(config["category_anchors"]),
                categories=_parse_categories(config["categories"]),
                default_footprints={
                    Variant(k): parse_footprint(v)
                    for k, v in (config.get("default_footprints") or {}).items()
                },
                variant_meta={
                    Variant(k): VariantMeta.from_dict(v)
                    for k, v in (config.get("variant_meta") or {}).items()
                },
                quota_curves=_parse_quota_curves(config["quota_curves"]),
                pool_sizes={
                    SceneMode(mode): {DeviceClass(d): int(n) for d, n in sizes.items()}
                    for mode, sizes in config["pool_sizes"].items()
                },
                grid_specs={
                    SceneMode(mode): {DeviceClass(d): GridSpec.from_dict(s) for d, s in specs.items()}
                    for mode, specs in config["grid_specs"].items()
                },
                bands=_parse_bands(config["bands"]),
                landmark_variant=Variant(config.get("landmark_variant", Variant.SUN.value)),
                filler_variant=Variant(config.get("filler_variant", Variant.CLOUDS.value)),
                signal_mapper=_parse_mapper(config.get("signal_mapper") or []),
                hosts={
                    str(host): SceneMode(entry["base_mode"])
                    for host, entry in (config.get("hosts") or {}).items()
                },
            )
        except KeyError as e:
            raise ValueError(f"Missing rule table or key: {e}") from e

        rules.validate()
        return rules

    def validate(self) -> None:
        """Cross-table consistency checks."""
        for category in Category:
            if not self.categories.get(category):
                raise ValueError(f"Category {category.value} declares no variants")
            for entry in self.categories[category]:
                if entry.footprint is None and entry.variant not in self.default_footprints:
                    raise ValueError(
                        f"No footprint for '{entry.variant.value}' in category {category.value}"
                    )

        for curve_set, per_category in self.quota_curves.items():
            for category, anchors in per_category.items():
                declared = set(self.declared_variants(category))
                for anchor in anchors:
                    stray = set(anchor.limits) - declared
                    if stray:
                        names = sorted(v.value for v in stray)
                        raise ValueError(
                            f"Quota curve {curve_set.value}/{category.value} names undeclared variants {names}"
                        )

        for mode in SceneMode:
            for device in DeviceClass:
                if device not in self.grid_specs.get(mode, {}):
                    raise ValueError(f"No grid spec for {mode.value}/{device.value}")
                size = self.pool_sizes.get(mode, {}).get(device)
                if size is None or size < 0:
                    raise ValueError(f"No valid pool size for {mode.value}/{device.value}")

        base = self.bands.get("base", {})
        for device in DeviceClass:
            table = base.get(device)
            if not table or Variant.CLOUDS not in table or Variant.HOUSE not in table:
                raise ValueError(f"Base band table for {device.value} must define clouds and house")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def declared_variants(self, category: Category) -> List[Variant]:
        return [entry.variant for entry in self.categories[category]]

    def category_footprint(self, category: Category, variant: Variant) -> Optional[Footprint]:
        for entry in self.categories.get(category, ()):
            if entry.variant == variant:
                return entry.footprint
        return None

    def meta(self, variant: Variant) -> Optional[VariantMeta]:
        return self.variant_meta.get(variant)

    def separation(self, variant: Optional[Variant]) -> float:
        meta = self.variant_meta.get(variant) if variant is not None else None
        return meta.separation if meta else 0.0

    def group(self, variant: Optional[Variant]):
        meta = self.variant_meta.get(variant) if variant is not None else None
        return meta.group if meta else None

    def grid_spec(self, mode: SceneMode, device: DeviceClass) -> GridSpec:
        return self.grid_specs[mode][device]

    def curves(self, curve_set: CurveSet, category: Category) -> Tuple[QuotaAnchor, ...]:
        return self.quota_curves.get(curve_set, {}).get(category, ())


# ============================================================================
# Value parsers
# ============================================================================


def parse_limit(raw) -> float:
    """Parse a quota cap: a non-negative number or an unbounded marker."""
    if isinstance(raw, str):
        if raw.strip().lower() in UNBOUNDED_TOKENS:
            return UNBOUNDED
        raise ValueError(f"Invalid quota limit: {raw!r}")
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"Invalid quota limit: {raw!r}")
    value = float(raw)
    if math.isinf(value) and value > 0:
        return UNBOUNDED
    if math.isnan(value) or value < 0:
        raise ValueError(f"Quota limit must be >= 0: {raw!r}")
    return value


def parse_footprint(raw) -> Footprint:
    w, h = (int(v) for v in raw)
    if w < 1 or h < 1:
        raise ValueError(f"Footprint must be at least 1x1, got {w}x{h}")
    return (w, h)


def _check_margin(value: Margin) -> Margin:
    if value is None:
        return None
    if isinstance(value, str):
        if not PERCENT_RE.match(value):
            raise ValueError(f"Row rule margin must look like 'NN%': {value!r}")
        return value.strip()
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValueError(f"Row rule margin must be a non-negative number: {value!r}")
    return float(value)


def _unit_float(value, what: str) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{what} must lie in [0, 1], got {value}")
    return value


def _parse_anchors(raw: list) -> Tuple[CategoryAnchor, ...]:
    anchors = tuple(sorted((CategoryAnchor.from_dict(a) for a in raw), key=lambda a: a.t))
    if not anchors:
        raise ValueError("At least one category anchor is required")
    return anchors


def _parse_categories(raw: dict) -> Dict[Category, Tuple[VariantEntry, ...]]:
    categories = {}
    for category in Category:
        entries = raw.get(category.value) or []
        categories[category] = tuple(VariantEntry.from_dict(e) for e in entries)
    return categories


def _parse_quota_curves(raw: dict) -> Dict[CurveSet, Dict[Category, Tuple[QuotaAnchor, ...]]]:
    curves = {}
    for set_name, per_category in raw.items():
        curve_set = CurveSet(set_name)
        curves[curve_set] = {
            Category(cat): tuple(sorted((QuotaAnchor.from_dict(a) for a in anchors), key=lambda a: a.t))
            for cat, anchors in per_category.items()
        }
    return curves


def _parse_bands(raw: dict) -> Dict[str, Dict[DeviceClass, Dict[Variant, Band]]]:
    bands = {}
    for table, per_device in raw.items():
        if table not in BAND_TABLES:
            raise ValueError(f"Unknown band table {table!r}, expected one of {BAND_TABLES}")
        bands[table] = {
            DeviceClass(device): {Variant(v): Band.from_value(b) for v, b in (entries or {}).items()}
            for device, entries in per_device.items()
        }
    return bands


def _parse_mapper(raw: list) -> Tuple[Tuple[float, float], ...]:
    points = []
    for point in raw:
        if isinstance(point, dict):
            points.append((float(point["x"]), float(point["t"])))
        else:
            x, t = point
            points.append((float(x), float(t)))
    return tuple(sorted(points))


# ============================================================================
# Loading
# ============================================================================


def load_rules(path: Path) -> SceneRules:
    """
    Load a rule set from a YAML file.

    Args:
        path: Path to a ``.yaml`` file shaped like ``default_rules.yaml``

    Returns:
        Validated SceneRules
    """
    path = Path(path)
    loader = ConfigLoader(path.parent)
    rules = SceneRules.from_dict(loader.load(path.stem))
    logger.info(f"Loaded scene rules from {path}")
    return rules


@lru_cache(maxsize=1)
def load_default_rules() -> SceneRules:
    """Packaged rule set, parsed once per process."""
    return SceneRules.from_dict(load_packaged_rules())
