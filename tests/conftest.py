"""Pytest configuration and shared fixtures."""

import copy
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scene_field.catalog import Category, SceneMode
from scene_field.pool import PoolItem, make_default_pool
from scene_field.rules import SceneRules, load_default_rules
from scene_field.utils.config import load_packaged_rules

# Scenario C viewport
VIEWPORT = (800, 600)


@pytest.fixture
def rules() -> SceneRules:
    """Packaged rule set."""
    return load_default_rules()


@pytest.fixture
def raw_rules() -> dict:
    """Mutable copy of the packaged YAML mapping, for building variants."""
    return copy.deepcopy(load_packaged_rules())


@pytest.fixture
def pool_24() -> list:
    """24 fresh items, all in category A."""
    return make_default_pool(24)


@pytest.fixture
def mixed_pool() -> list:
    """Small pool with every category represented."""
    cats = [Category.A, Category.A, Category.B, Category.B, Category.C, Category.D]
    return [PoolItem(id=i + 1, category=c) for i, c in enumerate(cats)]


@pytest.fixture(params=[(375, 812), (900, 700), (1280, 800), (1920, 1080)])
def viewport(request) -> tuple:
    """Viewports covering the three device classes."""
    return request.param


@pytest.fixture(params=list(SceneMode))
def mode(request) -> SceneMode:
    return request.param
