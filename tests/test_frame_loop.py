"""Unit tests for the FrameRenderer frame driver.

Tests cover:
- Construction from arguments and from a RenderConfig
- Single-frame rendering and frame counting
- The frame loop with update hooks, callbacks and stop conditions
- Lighting mode and shadow controls
"""

import pytest


@pytest.fixture
def basic_scene():
    from rtcore.scene.presets import create_basic_scene

    return create_basic_scene((0.0, 5.0, -5.0))


class TestFrameRendererSetup:
    def test_dimensions(self):
        from rtcore.core.frame_loop import FrameRenderer
        from rtcore.core.renderer import get_image_dimensions

        renderer = FrameRenderer(32, 24)
        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.frame_count == 0
        assert get_image_dimensions() == (32, 24)

    def test_invalid_dimensions(self):
        from rtcore.core.frame_loop import FrameRenderer

        with pytest.raises(ValueError):
            FrameRenderer(0, 24)

    def test_from_config(self):
        from rtcore.config import RenderConfig
        from rtcore.core.frame_loop import FrameRenderer
        from rtcore.core.renderer import LightingMode

        config = RenderConfig(width=16, height=8, lighting_mode="radiance", shadows_enabled=False)
        renderer = FrameRenderer.from_config(config)

        assert (renderer.width, renderer.height) == (16, 8)
        assert renderer.lighting_mode == LightingMode.RADIANCE
        assert renderer.shadows_enabled is False

    def test_resize(self):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(32, 24)
        renderer.resize(8, 6)
        assert (renderer.width, renderer.height) == (8, 6)

        with pytest.raises(ValueError):
            renderer.resize(8, 0)
        assert (renderer.width, renderer.height) == (8, 6)

    def test_controls(self):
        from rtcore.core.frame_loop import FrameRenderer
        from rtcore.core.renderer import LightingMode

        renderer = FrameRenderer(8, 8)
        assert renderer.cycle_lighting_mode() == LightingMode.OBSERVED_AREA
        renderer.lighting_mode = "brdf"
        assert renderer.lighting_mode == LightingMode.BRDF
        assert renderer.toggle_shadows() is False
        renderer.shadows_enabled = True
        assert renderer.shadows_enabled is True
        assert "BRDF" in repr(renderer)


class TestRendering:
    """Tests for rendering frames."""

    def test_render_single_frame(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(21, 15)
        seconds = renderer.render(basic_scene)

        assert seconds >= 0.0
        assert renderer.frame_count == 1
        image = renderer.get_image_numpy()
        assert image.shape == (15, 21, 3)
        assert image[:, :, 0].max() > 0

    def test_run_fixed_frame_count(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(8, 6)
        times = []
        frames = []

        rendered = renderer.run(
            basic_scene,
            num_frames=3,
            update=lambda scene, t: times.append(t),
            callback=lambda index, seconds: frames.append(index),
        )

        assert rendered == 3
        assert renderer.frame_count == 3
        assert frames == [0, 1, 2]
        assert len(times) == 3
        assert times == sorted(times)

    def test_stop_between_frames(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(8, 6)
        frames = []
        rendered = renderer.run(
            basic_scene,
            callback=lambda index, seconds: frames.append(index),
            stop=lambda: len(frames) >= 2,
        )
        assert rendered == 2

    def test_stop_before_first_frame(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(8, 6)
        assert renderer.run(basic_scene, num_frames=5, stop=lambda: True) == 0
        assert renderer.frame_count == 0

    def test_run_needs_an_end(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(8, 6)
        with pytest.raises(ValueError):
            renderer.run(basic_scene)

    def test_frames_generator_stops_with_caller(self, basic_scene):
        from rtcore.core.frame_loop import FrameRenderer

        renderer = FrameRenderer(8, 6)
        for index, _ in renderer.frames(basic_scene):
            if index == 1:
                break
        assert renderer.frame_count == 2

    def test_update_hook_animates_scene(self):
        from rtcore.core.frame_loop import FrameRenderer
        from rtcore.scene.presets import (
            animate_reference_scene,
            create_reference_scene,
            reference_yaw,
        )

        scene = create_reference_scene()
        renderer = FrameRenderer(16, 12)
        times = []

        def update(s, total_time):
            times.append(total_time)
            animate_reference_scene(s, total_time)

        renderer.run(scene, num_frames=2, update=update)

        assert len(times) == 2
        expected = reference_yaw(times[-1])
        assert all(m.yaw == pytest.approx(expected) for m in scene.meshes)

    def test_save_image(self, basic_scene, tmp_path):
        from rtcore.core.frame_loop import FrameRenderer
        from rtcore.preview.export import load_image

        renderer = FrameRenderer(12, 10)
        renderer.render(basic_scene)
        path = tmp_path / "frame.png"
        renderer.save_image(str(path))

        assert (load_image(path) == renderer.get_image_numpy()).all()
