"""
Closed vocabularies of the scene engine.

Categories, variants, device classes and modes are enums so the rule
tables can be validated against them when they are loaded.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Sticky item category. Declaration order is the apportionment order."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"


CATEGORY_ORDER = list(Category)


class Variant(str, Enum):
    CLOUDS = "clouds"
    SUN = "sun"
    BUS = "bus"
    SNOW = "snow"
    VILLA = "villa"
    TREES = "trees"
    HOUSE = "house"
    POWER = "power"
    CAR = "car"
    SEA = "sea"
    CAR_FACTORY = "car_factory"


SKY_VARIANTS = frozenset({Variant.CLOUDS, Variant.SNOW, Variant.SUN})


class DeviceClass(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class SceneMode(str, Enum):
    START = "start"
    QUESTIONNAIRE = "questionnaire"
    OVERLAY = "overlay"


class CurveSet(str, Enum):
    """Named per-variant quota curve sets."""

    DEFAULT = "default"
    OVERLAY = "overlay"


class Layer(str, Enum):
    SKY = "sky"
    GROUND = "ground"


class Group(str, Enum):
    SKY = "sky"
    BUILDING = "building"
    VEHICLE = "vehicle"
    NATURE = "nature"


@dataclass(frozen=True)
class VariantMeta:
    """Layer, visual group and soft minimum separation (in cells)."""

    layer: Layer
    group: Group
    separation: float = 0.0

    @classmethod
    def from_dict(cls, config: dict) -> "VariantMeta":
        separation = float(config.get("separation", 0.0))
        if separation < 0:
            raise ValueError(f"separation must be >= 0, got {separation}")
        return cls(
            layer=Layer(config["layer"]),
            group=Group(config["group"]),
            separation=separation,
        )


def is_sky_variant(variant: Optional[Variant]) -> bool:
    return variant in SKY_VARIANTS


def resolve_mode(questionnaire_open: bool = False, overlay: bool = False) -> SceneMode:
    """Overlay wins over an open questionnaire; otherwise the start scene."""
    if overlay:
        return SceneMode.OVERLAY
    if questionnaire_open:
        return SceneMode.QUESTIONNAIRE
    return SceneMode.START


def curve_set_for_mode(mode: SceneMode) -> CurveSet:
    return CurveSet.OVERLAY if mode == SceneMode.OVERLAY else CurveSet.DEFAULT
