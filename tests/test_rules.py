"""Tests for rule loading and validation."""

import math

import pytest
import yaml

from scene_field.catalog import Category, CurveSet, DeviceClass, SceneMode, Variant, resolve_mode
from scene_field.rules import SceneRules, load_default_rules, load_rules, parse_limit
from scene_field.utils.config import ConfigLoader, load_config


class TestPackagedRules:
    """Tests for the shipped rule tables."""

    def test_loads(self, rules):
        assert len(rules.category_anchors) == 5
        assert rules.landmark_variant == Variant.SUN
        assert rules.filler_variant == Variant.CLOUDS

    def test_cached(self):
        assert load_default_rules() is load_default_rules()

    def test_declared_variants_order(self, rules):
        assert rules.declared_variants(Category.A) == [Variant.CLOUDS, Variant.SUN, Variant.BUS]
        assert rules.category_footprint(Category.D, Variant.CAR_FACTORY) == (2, 2)

    def test_unbounded_marker(self, rules):
        anchors = rules.curves(CurveSet.DEFAULT, Category.C)
        assert math.isinf(anchors[0].limits[Variant.HOUSE])

    def test_grid_specs_complete(self, rules):
        for mode in SceneMode:
            for device in DeviceClass:
                assert rules.grid_spec(mode, device).rows > 0

    def test_hosts(self, rules):
        assert rules.hosts == {"intro": SceneMode.START, "city": SceneMode.OVERLAY}

    def test_variant_meta(self, rules):
        assert rules.separation(Variant.SUN) == 4.0
        assert rules.separation(Variant.CAR) == 0.0
        assert rules.group(Variant.VILLA) == rules.group(Variant.HOUSE)


class TestValidation:
    """Tests for rejected rule tables."""

    def test_stray_curve_variant(self, raw_rules):
        raw_rules["quota_curves"]["default"]["C"][0]["limits"]["car"] = 1
        with pytest.raises(ValueError, match="undeclared"):
            SceneRules.from_dict(raw_rules)

    def test_missing_grid_spec(self, raw_rules):
        del raw_rules["grid_specs"]["overlay"]["medium"]
        with pytest.raises(ValueError, match="grid spec"):
            SceneRules.from_dict(raw_rules)

    def test_missing_table(self, raw_rules):
        del raw_rules["bands"]
        with pytest.raises(ValueError, match="Missing"):
            SceneRules.from_dict(raw_rules)

    def test_bad_margin(self, raw_rules):
        raw_rules["grid_specs"]["start"]["large"]["row_rules"] = [{"left": "lots"}]
        with pytest.raises(ValueError):
            SceneRules.from_dict(raw_rules)

    def test_bad_footprint(self, raw_rules):
        raw_rules["categories"]["B"][0]["footprint"] = [0, 2]
        with pytest.raises(ValueError):
            SceneRules.from_dict(raw_rules)

    def test_anchor_out_of_range(self, raw_rules):
        raw_rules["category_anchors"][0]["t"] = 1.5
        with pytest.raises(ValueError):
            SceneRules.from_dict(raw_rules)

    def test_all_zero_anchor(self, raw_rules):
        raw_rules["category_anchors"][0]["mix"] = [0, 0, 0, 0]
        with pytest.raises(ValueError, match="all zero"):
            SceneRules.from_dict(raw_rules)

    def test_variant_without_any_footprint(self, raw_rules):
        """A variant with no category or default footprint fails at load."""
        raw_rules["categories"]["A"][2] = {"variant": "bus"}
        del raw_rules["default_footprints"]["bus"]
        with pytest.raises(ValueError, match="No footprint"):
            SceneRules.from_dict(raw_rules)

    def test_unknown_variant(self, raw_rules):
        raw_rules["categories"]["A"].append({"variant": "rocket", "footprint": [1, 1]})
        with pytest.raises(ValueError):
            SceneRules.from_dict(raw_rules)

    @pytest.mark.parametrize("raw,expected", [("inf", math.inf), ("Unbounded", math.inf), (3, 3.0), (float("inf"), math.inf)])
    def test_parse_limit(self, raw, expected):
        assert parse_limit(raw) == expected

    @pytest.mark.parametrize("raw", [-1, "many", True, None])
    def test_parse_limit_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_limit(raw)


class TestConfigLoader:
    """Tests for YAML loading."""

    def test_missing_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "nope")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path, "absent")

    def test_empty_file(self, tmp_path):
        (tmp_path / "empty.yaml").write_text("")
        assert load_config(tmp_path, "empty") == {}

    def test_non_mapping(self, tmp_path):
        (tmp_path / "list.yaml").write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(tmp_path, "list")

    def test_load_all(self, tmp_path):
        (tmp_path / "a.yaml").write_text("x: 1\n")
        (tmp_path / "b.yaml").write_text("y: 2\n")
        assert ConfigLoader(tmp_path).load_all() == {"a": {"x": 1}, "b": {"y": 2}}

    def test_load_rules_from_file(self, tmp_path, raw_rules):
        raw_rules["pool_sizes"]["start"]["large"] = 40
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump(raw_rules))
        rules = load_rules(path)
        assert rules.pool_sizes[SceneMode.START][DeviceClass.LARGE] == 40


@pytest.mark.parametrize(
    "questionnaire,overlay,expected",
    [
        (False, False, SceneMode.START),
        (True, False, SceneMode.QUESTIONNAIRE),
        (False, True, SceneMode.OVERLAY),
        (True, True, SceneMode.OVERLAY),
    ],
)
def test_resolve_mode(questionnaire, overlay, expected):
    assert resolve_mode(questionnaire, overlay) == expected
