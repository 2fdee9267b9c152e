"""Pytest configuration for rtcore tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every module-level field.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and render settings before and after each test."""
    # Import here so the field-allocating modules load after ti.init()
    from rtcore.core.renderer import reset_render_settings
    from rtcore.materials.cook_torrance import clear_cook_torrance_materials
    from rtcore.materials.lambert import clear_lambert_materials
    from rtcore.materials.lambert_phong import clear_lambert_phong_materials
    from rtcore.materials.solid_color import clear_solid_color_materials
    from rtcore.scene.intersection import clear_scene
    from rtcore.scene.lights import clear_lights
    from rtcore.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lights()
        clear_solid_color_materials()
        clear_lambert_materials()
        clear_lambert_phong_materials()
        clear_cook_torrance_materials()
        _clear_material_tracking()
        reset_render_settings()

    _clear_all()

    yield

    _clear_all()
