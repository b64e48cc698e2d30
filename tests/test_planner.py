"""Tests for variant assignment."""

import logging
from dataclasses import replace

import pytest

from scene_field.catalog import Category, CurveSet, Variant
from scene_field.planner import assign_variants, footprint_for, plan_category
from scene_field.pool import PoolItem
from scene_field.rules import SceneRules


def _items(category, ids):
    return [PoolItem(id=i, category=category) for i in ids]


class TestPlanCategory:
    """Tests for plan_category."""

    def test_low_signal_category_a(self, rules):
        """One sun at t=0, bus cap 0, the rest are clouds."""
        plan = plan_category(Category.A, _items(Category.A, [3, 1, 2, 4]), 0.0, rules=rules)
        assert plan[1].variant == Variant.SUN
        assert [plan[i].variant for i in (2, 3, 4)] == [Variant.CLOUDS] * 3

    def test_high_signal_category_a(self, rules):
        """Finite caps fill in declared order before the sink."""
        plan = plan_category(Category.A, _items(Category.A, range(1, 7)), 1.0, rules=rules)
        variants = [plan[i].variant for i in range(1, 7)]
        assert variants == [Variant.SUN] * 3 + [Variant.BUS] * 2 + [Variant.CLOUDS]

    def test_footprints_from_category_table(self, rules):
        plan = plan_category(Category.A, _items(Category.A, [1, 2]), 0.0, rules=rules)
        assert plan[1].footprint == (2, 2)
        assert plan[2].footprint == (2, 3)

    def test_salt_does_not_reorder_unique_ids(self, rules):
        """Ids are unique, so the salt only breaks ties that never occur."""
        items = _items(Category.D, range(1, 9))
        assert plan_category(Category.D, items, 0.3, salt=0, rules=rules) == plan_category(
            Category.D, items, 0.3, salt=987654, rules=rules
        )

    def test_empty(self, rules):
        assert plan_category(Category.B, [], 0.5, rules=rules) == {}

    def test_no_sink_falls_back_to_first_variant(self, raw_rules):
        """Without an unbounded variant, overflow takes the first declared variant."""
        raw_rules["quota_curves"]["default"]["C"] = [{"t": 0.0, "limits": {"power": 1}}]
        rules = SceneRules.from_dict(raw_rules)
        plan = plan_category(Category.C, _items(Category.C, [1, 2, 3]), 0.5, rules=rules)
        assert [plan[i].variant for i in (1, 2, 3)] == [Variant.POWER, Variant.HOUSE, Variant.HOUSE]

    def test_overlay_curve_set(self, rules):
        """Overlay curves hand out more finite variants."""
        items = _items(Category.B, range(1, 21))
        plan = plan_category(Category.B, items, 1.0, curve_set=CurveSet.OVERLAY, rules=rules)
        trees = sum(1 for a in plan.values() if a.variant == Variant.TREES)
        assert trees == 12


class TestFootprintFor:
    """Tests for footprint lookup."""

    def test_default_footprint_warns(self, raw_rules, caplog):
        """A category entry without a footprint uses the default table."""
        raw_rules["categories"]["A"][2] = {"variant": "bus"}
        rules = SceneRules.from_dict(raw_rules)
        with caplog.at_level(logging.WARNING, logger="scene_field.planner"):
            assert footprint_for(Category.A, Variant.BUS, rules) == (2, 1)
        assert "default footprint" in caplog.text

    def test_missing_footprint_raises(self, raw_rules):
        """No footprint anywhere is a configuration error."""
        raw_rules["categories"]["A"][2] = {"variant": "bus"}
        loaded = SceneRules.from_dict(raw_rules)
        defaults = {v: fp for v, fp in loaded.default_footprints.items() if v != Variant.BUS}
        rules = replace(loaded, default_footprints=defaults)
        with pytest.raises(KeyError):
            footprint_for(Category.A, Variant.BUS, rules)


class TestAssignVariants:
    """Tests for assign_variants over a whole pool."""

    def test_every_item_assigned(self, rules, mixed_pool):
        out = assign_variants(mixed_pool, 0.5, rules=rules)
        assert [p.id for p in out] == [p.id for p in mixed_pool]
        assert all(p.variant is not None and p.footprint is not None for p in out)

    def test_variant_belongs_to_category(self, rules, mixed_pool):
        out = assign_variants(mixed_pool, 0.2, rules=rules)
        for item in out:
            assert item.variant in rules.declared_variants(item.category)

    def test_input_untouched(self, rules, mixed_pool):
        assign_variants(mixed_pool, 0.5, rules=rules)
        assert all(p.variant is None for p in mixed_pool)
