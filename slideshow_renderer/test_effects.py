"""
Tests for transition effects

Property tests on a small 40x30 canvas with solid-colour images, so
expected pixel values can be computed by hand.
"""

import pytest
import numpy as np

from slide_types import TransitionKind
from render_video_core import create_canvas
from .effects import (
    EFFECT_RENDERERS,
    draw_cover,
    resolve_transition_kind,
    render_transition_frame
)


WIDTH = 40
HEIGHT = 30
RED = (255, 0, 0)
BLUE = (0, 0, 255)


def solid(color, width=8, height=6):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


@pytest.fixture
def red_image():
    return solid(RED)


@pytest.fixture
def blue_image():
    return solid(BLUE)


def render(kind, progress, from_image, to_image, **kwargs):
    canvas = create_canvas(WIDTH, HEIGHT)
    render_transition_frame(canvas, from_image, to_image, progress, kind, WIDTH, HEIGHT, **kwargs)
    return canvas


def assert_color(pixel, expected, atol=0.5):
    np.testing.assert_allclose(pixel, expected, atol=atol)


def assert_uniform(canvas, expected, atol=0.5):
    np.testing.assert_allclose(canvas, np.broadcast_to(np.asarray(expected, np.float32), canvas.shape), atol=atol)


# ============================================================================
# Dispatch
# ============================================================================

class TestDispatch:

    def test_every_kind_has_a_renderer(self):
        assert set(EFFECT_RENDERERS) == set(TransitionKind)

    def test_resolve_kind_from_wire_name(self):
        assert resolve_transition_kind('wipe-up') is TransitionKind.WIPE_UP
        assert resolve_transition_kind(TransitionKind.FLIP) is TransitionKind.FLIP

    @pytest.mark.parametrize('kind', ['sparkle', None, 42])
    def test_unknown_kind_resolves_to_cut(self, kind):
        assert resolve_transition_kind(kind) is TransitionKind.NONE

    def test_unknown_kind_renders_hard_cut(self, red_image, blue_image):
        assert_uniform(render('sparkle', 0.3, red_image, blue_image), RED)
        assert_uniform(render('sparkle', 0.7, red_image, blue_image), BLUE)

    @pytest.mark.parametrize('kind', list(TransitionKind))
    def test_every_kind_renders_without_images(self, kind):
        """Absent images are skipped; only the background remains"""
        canvas = render(kind, 0.5, None, None, background_color=(10, 20, 30))
        assert_uniform(canvas, (10, 20, 30))

    @pytest.mark.parametrize('kind', list(TransitionKind))
    @pytest.mark.parametrize('progress', [0.0, 0.5, 1.0])
    def test_every_kind_stays_in_range(self, kind, progress, red_image, blue_image):
        canvas = render(kind, progress, red_image, blue_image, max_blur_radius=3.0)
        assert canvas.min() >= -0.01
        assert canvas.max() <= 255.01


class TestDrawCover:

    def test_fills_canvas_regardless_of_aspect(self):
        canvas = create_canvas(WIDTH, HEIGHT)
        assert draw_cover(canvas, solid(RED, 3, 9), WIDTH, HEIGHT)
        assert_uniform(canvas, RED)

    def test_absent_image(self):
        canvas = create_canvas(WIDTH, HEIGHT)
        assert draw_cover(canvas, None, WIDTH, HEIGHT) is False


# ============================================================================
# Individual effects
# ============================================================================

class TestCutAndFades:

    def test_cut_switches_at_midpoint(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.NONE, 0.49, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.NONE, 0.5, red_image, blue_image), BLUE)

    def test_fade_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.FADE, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.FADE, 1.0, red_image, blue_image), BLUE)

    def test_fade_midpoint_layers_source_over(self, red_image, blue_image):
        """from at 0.5 over black, then to at 0.5 over that"""
        canvas = render(TransitionKind.FADE, 0.5, red_image, blue_image)
        assert_color(canvas[15, 20], (63.75, 0, 127.5))

    def test_dissolve_midpoint_uses_trig_opacities(self, red_image, blue_image):
        canvas = render(TransitionKind.DISSOLVE, 0.5, red_image, blue_image)
        alpha = np.sqrt(0.5)
        assert_color(canvas[15, 20], (255 * alpha * (1 - alpha), 0, 255 * alpha))

    def test_fade_with_missing_incoming_image(self, red_image):
        canvas = render(TransitionKind.FADE, 0.5, red_image, None, background_color=(0, 0, 0))
        assert_color(canvas[0, 0], (127.5, 0, 0))


class TestSlides:

    def test_slide_left_halfway(self, red_image, blue_image):
        canvas = render(TransitionKind.SLIDE_LEFT, 0.5, red_image, blue_image)
        assert_uniform(canvas[:, :20], RED)
        assert_uniform(canvas[:, 20:], BLUE)

    def test_slide_right_halfway(self, red_image, blue_image):
        canvas = render(TransitionKind.SLIDE_RIGHT, 0.5, red_image, blue_image)
        assert_uniform(canvas[:, :20], BLUE)
        assert_uniform(canvas[:, 20:], RED)

    def test_slide_up_halfway(self, red_image, blue_image):
        canvas = render(TransitionKind.SLIDE_UP, 0.5, red_image, blue_image)
        assert_uniform(canvas[:15], RED)
        assert_uniform(canvas[15:], BLUE)

    def test_slide_down_halfway(self, red_image, blue_image):
        canvas = render(TransitionKind.SLIDE_DOWN, 0.5, red_image, blue_image)
        assert_uniform(canvas[:15], BLUE)
        assert_uniform(canvas[15:], RED)

    def test_slide_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.SLIDE_LEFT, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.SLIDE_LEFT, 1.0, red_image, blue_image), BLUE)


class TestWipes:

    def test_wipe_left_reveals_from_left(self, red_image, blue_image):
        canvas = render(TransitionKind.WIPE_LEFT, 0.25, red_image, blue_image)
        assert_uniform(canvas[:, :10], BLUE)
        assert_uniform(canvas[:, 10:], RED)

    def test_wipe_right_reveals_from_right(self, red_image, blue_image):
        canvas = render(TransitionKind.WIPE_RIGHT, 0.25, red_image, blue_image)
        assert_uniform(canvas[:, :30], RED)
        assert_uniform(canvas[:, 30:], BLUE)

    def test_wipe_up_reveals_from_top(self, red_image, blue_image):
        canvas = render(TransitionKind.WIPE_UP, 0.5, red_image, blue_image)
        assert_uniform(canvas[:15], BLUE)
        assert_uniform(canvas[15:], RED)

    def test_wipe_down_reveals_from_bottom(self, red_image, blue_image):
        canvas = render(TransitionKind.WIPE_DOWN, 0.5, red_image, blue_image)
        assert_uniform(canvas[:15], RED)
        assert_uniform(canvas[15:], BLUE)

    def test_wipe_fractional_edge_is_antialiased(self, red_image, blue_image):
        # 0.2625 * 40 = 10.5 pixels revealed
        canvas = render(TransitionKind.WIPE_LEFT, 0.2625, red_image, blue_image)
        assert_color(canvas[0, 10], (127.5, 0, 127.5))


class TestZooms:

    def test_zoom_in_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.ZOOM_IN, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.ZOOM_IN, 1.0, red_image, blue_image), BLUE)

    def test_zoom_in_incoming_grows_from_centre(self, red_image, blue_image):
        canvas = render(TransitionKind.ZOOM_IN, 0.5, red_image, blue_image)
        assert_color(canvas[15, 20], (63.75, 0, 127.5))
        assert_color(canvas[0, 0], (127.5, 0, 0))

    def test_zoom_out_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.ZOOM_OUT, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.ZOOM_OUT, 1.0, red_image, blue_image), BLUE)

    def test_zoom_out_draws_outgoing_on_top(self, red_image, blue_image):
        canvas = render(TransitionKind.ZOOM_OUT, 0.5, red_image, blue_image)
        # blue at 0.5 over black, then enlarged red at 0.5 over that
        assert_color(canvas[15, 20], (127.5, 0, 63.75))


class TestBlur:

    @pytest.fixture
    def split_image(self):
        """Left half white, right half black, same aspect as the canvas"""
        image = np.zeros((30, 40, 3), dtype=np.uint8)
        image[:, :20] = 255
        return image

    def test_no_blur_at_endpoints(self, split_image, blue_image):
        canvas = render(TransitionKind.BLUR, 0.0, split_image, blue_image)
        assert_color(canvas[10, 19], (255, 255, 255))
        assert_color(canvas[10, 20], (0, 0, 0))
        assert_uniform(render(TransitionKind.BLUR, 1.0, split_image, blue_image), BLUE)

    def test_blur_softens_edges(self, split_image, blue_image):
        canvas = render(TransitionKind.BLUR, 0.25, split_image, blue_image, max_blur_radius=4.0)
        assert 0 < canvas[10, 20, 0] < 255
        assert 0 < canvas[10, 19, 0] < 255

    def test_second_half_shows_incoming(self, red_image, blue_image):
        canvas = render(TransitionKind.BLUR, 0.75, red_image, blue_image, max_blur_radius=4.0)
        assert_color(canvas[15, 20], BLUE, atol=1.0)

    def test_max_blur_radius_zero_disables_blur(self, split_image, blue_image):
        canvas = render(TransitionKind.BLUR, 0.25, split_image, blue_image, max_blur_radius=0.0)
        assert_color(canvas[10, 19], (255, 255, 255))
        assert_color(canvas[10, 20], (0, 0, 0))


class TestFlips:

    def test_rotate_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.ROTATE, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.ROTATE, 1.0, red_image, blue_image), BLUE)

    def test_rotate_squeezes_horizontally(self, red_image, blue_image):
        canvas = render(TransitionKind.ROTATE, 0.25, red_image, blue_image)
        assert_color(canvas[15, 0], (0, 0, 0))
        assert_color(canvas[15, 20], (191.25, 0, 0))
        assert_color(canvas[0, 20], (191.25, 0, 0))

    def test_rotate_second_half_shows_incoming(self, red_image, blue_image):
        canvas = render(TransitionKind.ROTATE, 0.75, red_image, blue_image)
        assert_color(canvas[15, 20], (0, 0, 191.25))

    def test_flip_endpoints(self, red_image, blue_image):
        assert_uniform(render(TransitionKind.FLIP, 0.0, red_image, blue_image), RED)
        assert_uniform(render(TransitionKind.FLIP, 1.0, red_image, blue_image), BLUE)

    def test_flip_squashes_vertically(self, red_image, blue_image):
        canvas = render(TransitionKind.FLIP, 0.25, red_image, blue_image)
        assert_color(canvas[0, 20], (0, 0, 0))
        assert_color(canvas[15, 0], RED)

    def test_flip_midpoint_is_a_sliver(self, red_image, blue_image):
        canvas = render(TransitionKind.FLIP, 0.5, red_image, blue_image)
        assert canvas[:, :, 2].sum() < 255 * WIDTH


class TestBackground:

    def test_background_fills_uncovered_area(self, red_image, blue_image):
        canvas = render(TransitionKind.ROTATE, 0.25, red_image, blue_image, background_color=(0, 255, 0))
        assert_color(canvas[15, 0], (0, 255, 0))

    def test_canvas_cleared_before_drawing(self, red_image, blue_image):
        canvas = create_canvas(WIDTH, HEIGHT, fill_color=(200, 200, 200))
        render_transition_frame(canvas, None, None, 0.5, TransitionKind.FADE, WIDTH, HEIGHT)
        assert_uniform(canvas, (0, 0, 0))
