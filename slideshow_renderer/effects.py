"""
Transition Effects - Functional Core

Draw routines for the closed catalog of transition effects. Each routine
paints one composited frame of a transition between two images.

Canvas mutation only: no file I/O, no logging. The canvas is the float32 RGB
buffer owned by a FrameSurface (see shell.py) and is modified in-place.

Every image is placed cover-fit first; per-effect transforms are applied in
canvas space on top of that placement. A missing image (None) is skipped.
"""

from functools import partial
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np  # type: ignore

from slide_types import TransitionKind
from render_video_core import draw_image, fill_canvas, Rect
from .core import (
    cover_fit_matrix,
    translation_matrix,
    scale_about_matrix,
    slide_offsets,
    wipe_rect,
    dissolve_opacities,
    blur_radius_for_progress,
    card_flip_scale,
    flip_scale
)


# Peak blur sigma in output pixels, tuned at 1920x1080
DEFAULT_MAX_BLUR_RADIUS = 20.0

Image = Optional[np.ndarray]
EffectRenderer = Callable[[np.ndarray, Image, Image, float, int, int], None]


# ============================================================================
# Drawing Helper
# ============================================================================

def draw_cover(
    canvas: np.ndarray,
    image: Image,
    width: int,
    height: int,
    transform: Optional[np.ndarray] = None,
    opacity: float = 1.0,
    clip_rect: Optional[Rect] = None,
    blur_radius: float = 0.0
) -> bool:
    """Draw an image cover-fit, then apply a canvas-space transform

    Args:
        canvas: Target canvas (modified in-place)
        image: Pixel array or None (nothing drawn)
        width, height: Canvas size
        transform: Optional 3x3 canvas-space matrix applied after cover-fit
        opacity: Global alpha
        clip_rect: Optional (x, y, width, height) clip region
        blur_radius: Gaussian sigma in pixels

    Returns:
        True if anything was drawn
    """
    if image is None:
        return False

    matrix = cover_fit_matrix(image.shape[1], image.shape[0], width, height)
    if transform is not None:
        matrix = transform @ matrix
    return draw_image(canvas, image, matrix, opacity, clip_rect, blur_radius)


# ============================================================================
# Effect Routines
# ============================================================================

def render_cut(canvas, from_image, to_image, progress, width, height) -> None:
    """Hard cut at the midpoint"""
    draw_cover(canvas, from_image if progress < 0.5 else to_image, width, height)


def render_fade(canvas, from_image, to_image, progress, width, height) -> None:
    draw_cover(canvas, from_image, width, height, opacity=1.0 - progress)
    draw_cover(canvas, to_image, width, height, opacity=progress)


def render_dissolve(canvas, from_image, to_image, progress, width, height) -> None:
    """Cross-fade with cos/sin opacities for a softer midpoint than fade"""
    from_alpha, to_alpha = dissolve_opacities(progress)
    draw_cover(canvas, from_image, width, height, opacity=from_alpha)
    draw_cover(canvas, to_image, width, height, opacity=to_alpha)


def render_slide(canvas, from_image, to_image, progress, width, height, direction: str = 'left') -> None:
    """Push transition: both images at full opacity, translated along one axis"""
    (from_dx, from_dy), (to_dx, to_dy) = slide_offsets(direction, progress, width, height)
    draw_cover(canvas, from_image, width, height, transform=translation_matrix(from_dx, from_dy))
    draw_cover(canvas, to_image, width, height, transform=translation_matrix(to_dx, to_dy))


def render_wipe(canvas, from_image, to_image, progress, width, height, direction: str = 'left') -> None:
    """Reveal the incoming image through a rectangle growing from one edge"""
    draw_cover(canvas, from_image, width, height)
    draw_cover(canvas, to_image, width, height,
               clip_rect=wipe_rect(direction, progress, width, height))


def render_zoom_in(canvas, from_image, to_image, progress, width, height) -> None:
    """Incoming image grows from the centre while fading in"""
    draw_cover(canvas, from_image, width, height, opacity=1.0 - progress)
    grow = scale_about_matrix(progress, progress, width / 2.0, height / 2.0)
    draw_cover(canvas, to_image, width, height, transform=grow, opacity=progress)


def render_zoom_out(canvas, from_image, to_image, progress, width, height) -> None:
    """Outgoing image scales past full size while fading out over the incoming one"""
    draw_cover(canvas, to_image, width, height, opacity=progress)
    scale = 1.0 + progress
    grow = scale_about_matrix(scale, scale, width / 2.0, height / 2.0)
    draw_cover(canvas, from_image, width, height, transform=grow, opacity=1.0 - progress)


def render_blur(
    canvas, from_image, to_image, progress, width, height,
    max_blur_radius: float = DEFAULT_MAX_BLUR_RADIUS
) -> None:
    """Blur the outgoing image out, then the incoming image in"""
    radius = blur_radius_for_progress(progress, max_blur_radius)
    image = from_image if progress < 0.5 else to_image
    draw_cover(canvas, image, width, height, blur_radius=radius)


def render_rotate(canvas, from_image, to_image, progress, width, height) -> None:
    """Horizontal card-flip approximation"""
    squeeze = scale_about_matrix(card_flip_scale(progress), 1.0, width / 2.0, height / 2.0)
    if progress < 0.5:
        draw_cover(canvas, from_image, width, height, transform=squeeze, opacity=1.0 - progress)
    else:
        draw_cover(canvas, to_image, width, height, transform=squeeze, opacity=progress)


def render_flip(canvas, from_image, to_image, progress, width, height) -> None:
    """Vertical flip: outgoing image collapses to the centre line, incoming expands"""
    squash = scale_about_matrix(1.0, flip_scale(progress), 0.0, height / 2.0)
    draw_cover(canvas, from_image if progress < 0.5 else to_image, width, height, transform=squash)


# ============================================================================
# Dispatch
# ============================================================================

EFFECT_RENDERERS: Dict[TransitionKind, EffectRenderer] = {
    TransitionKind.NONE: render_cut,
    TransitionKind.FADE: render_fade,
    TransitionKind.DISSOLVE: render_dissolve,
    TransitionKind.SLIDE_LEFT: partial(render_slide, direction='left'),
    TransitionKind.SLIDE_RIGHT: partial(render_slide, direction='right'),
    TransitionKind.SLIDE_UP: partial(render_slide, direction='up'),
    TransitionKind.SLIDE_DOWN: partial(render_slide, direction='down'),
    TransitionKind.WIPE_LEFT: partial(render_wipe, direction='left'),
    TransitionKind.WIPE_RIGHT: partial(render_wipe, direction='right'),
    TransitionKind.WIPE_UP: partial(render_wipe, direction='up'),
    TransitionKind.WIPE_DOWN: partial(render_wipe, direction='down'),
    TransitionKind.ZOOM_IN: render_zoom_in,
    TransitionKind.ZOOM_OUT: render_zoom_out,
    TransitionKind.BLUR: render_blur,
    TransitionKind.ROTATE: render_rotate,
    TransitionKind.FLIP: render_flip,
}

_missing = set(TransitionKind) - set(EFFECT_RENDERERS)
if _missing:
    raise RuntimeError(f"No effect renderer for: {sorted(kind.value for kind in _missing)}")


def resolve_transition_kind(kind: Union[TransitionKind, str, None]) -> TransitionKind:
    """Map an effect kind or wire name to TransitionKind

    Unrecognized or missing kinds resolve to NONE (hard cut).

    Examples:
        >>> resolve_transition_kind("wipe-up")
        <TransitionKind.WIPE_UP: 'wipe-up'>
        >>> resolve_transition_kind("sparkle")
        <TransitionKind.NONE: 'none'>
    """
    if isinstance(kind, TransitionKind):
        return kind
    try:
        return TransitionKind(kind)
    except ValueError:
        return TransitionKind.NONE


def render_transition_frame(
    canvas: np.ndarray,
    from_image: Image,
    to_image: Image,
    progress: float,
    kind: Union[TransitionKind, str],
    width: int,
    height: int,
    background_color: Tuple[int, int, int] = (0, 0, 0),
    max_blur_radius: float = DEFAULT_MAX_BLUR_RADIUS
) -> None:
    """Paint one transition frame onto canvas

    Modifies canvas in-place. The canvas is cleared to background_color
    before the effect draws.

    Args:
        canvas: float32 RGB canvas (height, width, 3)
        from_image: Outgoing image, or None
        to_image: Incoming image, or None
        progress: Eased transition progress (0.0 = all "from", 1.0 = all "to")
        kind: Effect kind; unrecognized kinds fall back to a hard cut
        width, height: Canvas size
        background_color: RGB clear colour
        max_blur_radius: Peak sigma of the blur effect
    """
    fill_canvas(canvas, background_color)

    kind = resolve_transition_kind(kind)
    renderer = EFFECT_RENDERERS[kind]
    if kind is TransitionKind.BLUR:
        renderer = partial(renderer, max_blur_radius=max_blur_radius)
    renderer(canvas, from_image, to_image, progress, width, height)
