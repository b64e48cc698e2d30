"""Tests for occupancy, scoring and the placer."""

import numpy as np
import pytest

from scene_field.catalog import Category, DeviceClass, SceneMode, Variant
from scene_field.grid import GridGeometry, build_layout
from scene_field.occupancy import OccupancyGrid
from scene_field.placement import OccupancyPlacer, PlacementConfig, build_fallback_cells
from scene_field.planner import assign_variants
from scene_field.pool import FootRect, PoolItem, make_default_pool
from scene_field.scoring import score_candidate
from scene_field.utils.validation import validate_layout


def _placer(rules, width=1280, height=800, mode=SceneMode.START, salt=7):
    spec = rules.grid_spec(mode, DeviceClass.LARGE)
    layout = build_layout(width, height, spec)
    placer = OccupancyPlacer(
        layout.geometry,
        layout.mask,
        DeviceClass.LARGE,
        salt,
        questionnaire=mode == SceneMode.QUESTIONNAIRE,
        overlay=mode == SceneMode.OVERLAY,
        rules=rules,
    )
    return placer, layout


class TestOccupancyGrid:
    """Tests for the occupancy bitmap."""

    def test_claim_blocks_overlap(self):
        occ = OccupancyGrid(4, 4)
        assert occ.try_claim(0, 0, 2, 2) == FootRect(0, 0, 2, 2)
        assert occ.try_claim(1, 1, 1, 1) is None
        assert occ.try_claim(2, 2, 2, 2) == FootRect(2, 2, 2, 2)

    def test_forbidden_premarked(self):
        mask = np.zeros((3, 3), dtype=bool)
        mask[1, 1] = True
        occ = OccupancyGrid(3, 3, mask)
        assert not occ.can_place(1, 1, 1, 1)
        assert occ.free_cells == 8
        # Caller's mask is not modified by claims
        occ.mark(0, 0, 1, 1)
        assert not mask[0, 0]

    def test_out_of_bounds(self):
        occ = OccupancyGrid(3, 3)
        assert not occ.can_place(2, 2, 2, 1)
        assert not occ.can_place(-1, 0, 1, 1)

    def test_mask_shape_checked(self):
        with pytest.raises(ValueError):
            OccupancyGrid(3, 3, np.zeros((2, 3), dtype=bool))


class TestScoring:
    """Tests for candidate scoring."""

    def test_jitter_bounded(self, rules):
        """With no centre pull and nothing placed, only jitter remains."""
        score = score_candidate(0, 0, 1, 1, 10, 10, [], 3, Variant.CAR, rules, center_bias=False)
        assert -0.125 <= score <= 0.125

    def test_center_pull(self, rules):
        """Positions nearer the centre score higher."""
        near = score_candidate(4, 4, 1, 1, 10, 10, [], 3, Variant.CAR, rules)
        far = score_candidate(0, 0, 1, 1, 10, 10, [], 3, Variant.CAR, rules)
        assert near > far

    def test_separation_penalty(self, rules):
        """A same-group neighbour at distance 0 costs 3 * sep^2."""
        placed = [(FootRect(2, 2, 2, 2), Variant.SUN)]
        alone = score_candidate(2, 2, 2, 2, 10, 10, [], 3, Variant.SUN, rules)
        crowded = score_candidate(2, 2, 2, 2, 10, 10, placed, 3, Variant.SUN, rules)
        assert crowded - alone == pytest.approx(-3.0 * 4.0 ** 2)

    def test_other_group_ignored(self, rules):
        placed = [(FootRect(2, 2, 2, 2), Variant.HOUSE)]
        alone = score_candidate(2, 2, 2, 2, 10, 10, [], 3, Variant.SUN, rules)
        assert score_candidate(2, 2, 2, 2, 10, 10, placed, 3, Variant.SUN, rules) == alone

    def test_zero_separation_ignored(self, rules):
        placed = [(FootRect(2, 2, 1, 1), Variant.CAR)]
        alone = score_candidate(2, 2, 1, 1, 10, 10, [], 3, Variant.CAR, rules)
        assert score_candidate(2, 2, 1, 1, 10, 10, placed, 3, Variant.CAR, rules) == alone

    def test_deterministic(self, rules):
        args = (3, 5, 2, 2, 20, 10, [], 11, Variant.VILLA, rules)
        assert score_candidate(*args) == score_candidate(*args)


class TestFallbackCells:
    """Tests for the fallback scan order."""

    def test_excludes_forbidden(self):
        mask = np.zeros((3, 3), dtype=bool)
        mask[0, :] = True
        cells = build_fallback_cells(mask, 3)
        assert len(cells) == 6
        assert all(r != 0 for r, _ in cells)

    def test_center_first(self):
        mask = np.zeros((5, 5), dtype=bool)
        assert build_fallback_cells(mask, 5)[0] == (2, 2)

    def test_overlay_row_major(self):
        mask = np.zeros((2, 3), dtype=bool)
        assert build_fallback_cells(mask, 2, overlay=True) == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]

    def test_rows_below_fold_pushed_back(self):
        """A row just below the used area sorts after the row at the same plain distance above."""
        mask = np.zeros((6, 1), dtype=bool)
        cells = build_fallback_cells(mask, 4)
        # Used-area centre is row 1.5; row 0 is 1.5 away, row 4 counts as row 5.
        assert cells.index((0, 0)) < cells.index((4, 0))


class TestFallbackScan:
    """Tests for the rolling-cursor fallback scan."""

    def _overlay_placer(self, rules, mask):
        rows, cols = mask.shape
        geometry = GridGeometry(rows=rows, cols=cols, cell=10.0, used_rows=rows, usable_height=rows * 10)
        return OccupancyPlacer(geometry, mask, DeviceClass.LARGE, 0, overlay=True, rules=rules)

    def test_cursor_trails_last_claim(self, rules):
        """Each claim moves the cursor to two cells behind it and it never resets."""
        placer = self._overlay_placer(rules, np.zeros((4, 4), dtype=bool))
        claims = []
        cursors = []
        for _ in range(6):
            claims.append(placer._fallback(0, 3, 1, 1))
            cursors.append(placer.cursor)
        assert cursors == [0, 0, 0, 1, 2, 3]
        assert [(rect.r0, rect.c0) for rect in claims] == [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0), (1, 1)]

    def test_band_limits_scan(self, rules):
        placer = self._overlay_placer(rules, np.zeros((4, 4), dtype=bool))
        assert placer._fallback(2, 3, 1, 1) == FootRect(2, 0, 1, 1)
        assert placer.cursor == 6

    def test_skips_illegal_footprints(self, rules):
        """Footprints crossing a forbidden cell or the grid edge are passed over."""
        mask = np.zeros((4, 4), dtype=bool)
        mask[0, 1] = True
        placer = self._overlay_placer(rules, mask)
        assert placer._fallback(0, 3, 2, 2) == FootRect(0, 2, 2, 2)
        assert placer.cursor == 0
        assert placer._fallback(0, 3, 2, 2) == FootRect(1, 0, 2, 2)

    def test_full_grid_returns_none(self, rules):
        placer = self._overlay_placer(rules, np.zeros((2, 2), dtype=bool))
        assert placer._fallback(0, 1, 2, 2) == FootRect(0, 0, 2, 2)
        assert placer._fallback(0, 1, 1, 1) is None
        assert placer.cursor == 0


class TestOccupancyPlacer:
    """Tests for placing whole pools."""

    def test_no_overlap_in_bounds(self, rules):
        placer, layout = _placer(rules)
        pool = assign_variants(make_default_pool(28), 0.5, salt=7, rules=rules)
        result = placer.place_all(pool)
        assert result.placed
        assert validate_layout(result.placed, layout.mask)

    def test_every_item_accounted_for(self, rules):
        placer, _ = _placer(rules)
        pool = assign_variants(make_default_pool(28), 0.8, salt=7, rules=rules)
        result = placer.place_all(pool)
        placed_ids = {p.id for p in result.placed}
        assert placed_ids.isdisjoint(result.dropped)
        assert placed_ids | set(result.dropped) == {p.id for p in pool}

    def test_items_without_variant_skipped(self, rules):
        placer, _ = _placer(rules)
        result = placer.place_all([PoolItem(id=1, category=Category.A)])
        assert result.placed == []
        assert result.dropped == []
        assert result.pool[0].placement is None

    def test_pool_gets_positions(self, rules):
        placer, _ = _placer(rules)
        pool = assign_variants(make_default_pool(6), 0.5, salt=7, rules=rules)
        result = placer.place_all(pool)
        by_id = {p.id: p for p in result.pool}
        for item in result.placed:
            assert by_id[item.id].placement == item.footprint
            assert (by_id[item.id].x, by_id[item.id].y) == (item.x, item.y)

    def test_same_inputs_same_layout(self, rules):
        pool = assign_variants(make_default_pool(28), 0.3, salt=7, rules=rules)
        first = _placer(rules)[0].place_all(pool).placed
        second = _placer(rules)[0].place_all(pool).placed
        assert first == second

    def test_fully_forbidden_band_is_dropped(self, rules):
        """With every row of the band forbidden the item is dropped and nothing overlaps."""
        spec = rules.grid_spec(SceneMode.START, DeviceClass.LARGE)
        layout = build_layout(1280, 800, spec)
        mask = layout.mask.copy()
        mask[:3, :] = True
        placer = OccupancyPlacer(layout.geometry, mask, DeviceClass.LARGE, 7, rules=rules)

        house = placer.place_one(Variant.HOUSE, 1, 3)
        assert house is not None
        # Large sun band spans rows 0..1, all forbidden now
        assert placer.place_one(Variant.SUN, 2, 2) is None
        assert not house.overlaps(FootRect(0, 0, layout.geometry.cols, 3))

    def test_pixel_position(self, rules):
        placer, layout = _placer(rules)
        cell = layout.geometry.cell
        x, y = placer.pixel_position(FootRect(2, 3, 2, 3), Variant.HOUSE)
        assert (x, y) == (4 * cell + cell / 2, 3 * cell + cell / 2)
        x, y = placer.pixel_position(FootRect(2, 3, 2, 2), Variant.SUN)
        assert (x, y) == (4 * cell, 3 * cell)


class TestPlacementConfig:
    """Tests for PlacementConfig.from_dict."""

    def test_defaults(self):
        assert PlacementConfig.from_dict({}) == PlacementConfig()

    def test_overrides(self):
        config = PlacementConfig.from_dict({"center_weight": 0.0, "cursor_backoff": 5})
        assert config.center_weight == 0.0
        assert config.cursor_backoff == 5

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            PlacementConfig.from_dict({"jitter_scale": -1})
