"""
Slideshow Renderer - Functional Core

Pure functions for placement geometry and per-effect parameters.
No side effects, no pixel operations - only calculations.

Follows functional core, imperative shell pattern:
- This module: Pure transformations (testable, predictable)
- effects.py / render_video_core.py: Pixel compositing
- shell.py: Surface ownership and the render loop

Placement transforms are 3x3 homogeneous matrices in canvas pixel space
(origin top-left, y down). All transforms used here are axis-aligned
(scale + translate).
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np  # type: ignore

from slide_types import KenBurnsSpec
from .easing import clamp01


Rect = Tuple[float, float, float, float]

# Smallest vertical scale drawn by the flip transition
FLIP_MIN_SCALE = 0.001

DIRECTIONS = ('left', 'right', 'up', 'down')


# ============================================================================
# Affine Matrices
# ============================================================================

def identity_matrix() -> np.ndarray:
    return np.eye(3, dtype=np.float64)


def translation_matrix(tx: float, ty: float) -> np.ndarray:
    """3x3 translation by (tx, ty)"""
    m = np.eye(3, dtype=np.float64)
    m[0, 2] = tx
    m[1, 2] = ty
    return m


def scale_matrix(sx: float, sy: float) -> np.ndarray:
    """3x3 scale about the origin"""
    m = np.eye(3, dtype=np.float64)
    m[0, 0] = sx
    m[1, 1] = sy
    return m


def scale_about_matrix(sx: float, sy: float, cx: float, cy: float) -> np.ndarray:
    """Scale about the point (cx, cy)

    Equivalent to translate(cx, cy) · scale(sx, sy) · translate(-cx, -cy).
    """
    return translation_matrix(cx, cy) @ scale_matrix(sx, sy) @ translation_matrix(-cx, -cy)


# ============================================================================
# Cover-Fit Placement
# ============================================================================

def cover_fit_scale(image_width: int, image_height: int, canvas_width: int, canvas_height: int) -> float:
    """Uniform scale making the image cover the whole canvas"""
    return max(canvas_width / image_width, canvas_height / image_height)


def cover_fit_rect(
    image_width: int,
    image_height: int,
    canvas_width: int,
    canvas_height: int
) -> Rect:
    """Centred cover-fit placement, overflow cropped by the canvas

    Returns:
        (x, y, width, height) of the scaled image in canvas pixels

    Examples:
        >>> cover_fit_rect(200, 100, 100, 100)
        (-50.0, 0.0, 200.0, 100.0)
    """
    scale = cover_fit_scale(image_width, image_height, canvas_width, canvas_height)
    scaled_w = image_width * scale
    scaled_h = image_height * scale
    x = (canvas_width - scaled_w) / 2.0
    y = (canvas_height - scaled_h) / 2.0
    return (x, y, scaled_w, scaled_h)


def cover_fit_matrix(
    image_width: int,
    image_height: int,
    canvas_width: int,
    canvas_height: int
) -> np.ndarray:
    """Image pixel space → canvas space for the cover-fit placement"""
    x, y, _, _ = cover_fit_rect(image_width, image_height, canvas_width, canvas_height)
    scale = cover_fit_scale(image_width, image_height, canvas_width, canvas_height)
    return translation_matrix(x, y) @ scale_matrix(scale, scale)


# ============================================================================
# Pan/Zoom (Ken Burns) Evaluation
# ============================================================================

@dataclass(frozen=True)
class PanZoomTransform:
    """Evaluated pan/zoom state for one frame"""
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


IDENTITY_PAN_ZOOM = PanZoomTransform()


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def evaluate_ken_burns(spec: Optional[KenBurnsSpec], progress: float) -> PanZoomTransform:
    """Interpolate scale and offset over a slide's steady-display progress

    Args:
        spec: Pan/zoom description, or None for no motion
        progress: In-slide progress (clamped to [0, 1])

    Returns:
        PanZoomTransform (identity when spec is None)

    Examples:
        >>> evaluate_ken_burns(KenBurnsSpec(1.0, 2.0, (0, 0), (10, -10)), 0.5)
        PanZoomTransform(scale=1.5, offset_x=5.0, offset_y=-5.0)
    """
    if spec is None:
        return IDENTITY_PAN_ZOOM

    t = clamp01(progress)
    return PanZoomTransform(
        scale=lerp(spec.start_scale, spec.end_scale, t),
        offset_x=lerp(spec.start_offset[0], spec.end_offset[0], t),
        offset_y=lerp(spec.start_offset[1], spec.end_offset[1], t)
    )


def pan_zoom_matrix(transform: PanZoomTransform, canvas_width: int, canvas_height: int) -> np.ndarray:
    """Canvas-space matrix for a pan/zoom state

    Scales about the canvas centre, then shifts by the offset:
    x' = scale * (x - W/2) + W/2 + offset_x
    """
    cx = canvas_width / 2.0
    cy = canvas_height / 2.0
    return (
        translation_matrix(cx + transform.offset_x, cy + transform.offset_y)
        @ scale_matrix(transform.scale, transform.scale)
        @ translation_matrix(-cx, -cy)
    )


# ============================================================================
# Effect Parameters
# ============================================================================

def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction {direction!r}, expected one of {DIRECTIONS}")


def slide_offsets(
    direction: str,
    progress: float,
    width: int,
    height: int
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Translations of the outgoing and incoming image for a slide transition

    The outgoing image exits towards `direction`; the incoming image enters
    from the opposite side.

    Returns:
        ((from_dx, from_dy), (to_dx, to_dy)) in canvas pixels

    Examples:
        >>> slide_offsets('left', 0.25, 100, 50)
        ((-25.0, 0.0), (75.0, 0.0))
    """
    _check_direction(direction)
    if direction == 'left':
        return ((-progress * width, 0.0), ((1.0 - progress) * width, 0.0))
    if direction == 'right':
        return ((progress * width, 0.0), (-(1.0 - progress) * width, 0.0))
    if direction == 'up':
        return ((0.0, -progress * height), (0.0, (1.0 - progress) * height))
    return ((0.0, progress * height), (0.0, -(1.0 - progress) * height))


def wipe_rect(direction: str, progress: float, width: int, height: int) -> Rect:
    """Revealed region of the incoming image for a wipe transition

    The rectangle grows from the named edge.

    Returns:
        (x, y, width, height) in canvas pixels

    Examples:
        >>> wipe_rect('right', 0.25, 100, 50)
        (75.0, 0.0, 25.0, 50)
    """
    _check_direction(direction)
    if direction == 'left':
        return (0.0, 0.0, width * progress, height)
    if direction == 'right':
        return (width * (1.0 - progress), 0.0, width * progress, height)
    if direction == 'up':
        return (0.0, 0.0, width, height * progress)
    return (0.0, height * (1.0 - progress), width, height * progress)


def dissolve_opacities(progress: float) -> Tuple[float, float]:
    """(from_alpha, to_alpha) = (cos(p·π/2), sin(p·π/2))"""
    angle = progress * math.pi * 0.5
    return (math.cos(angle), math.sin(angle))


def blur_radius_for_progress(progress: float, max_radius: float) -> float:
    """Blur sigma for the two-phase blur transition

    Rises 0 → max over the first half, falls max → 0 over the second.
    """
    if progress < 0.5:
        return (progress / 0.5) * max_radius
    return ((1.0 - progress) / 0.5) * max_radius


def card_flip_scale(progress: float) -> float:
    """Horizontal scale of the rotate transition, |cos(progress·π)|"""
    if progress < 0.5:
        return abs(math.cos(progress * math.pi))
    return abs(math.cos((1.0 - progress) * math.pi))


def flip_scale(progress: float) -> float:
    """Vertical scale of the flip transition

    |1 - 2p| over the first half, |2p - 1| over the second, never exactly 0.
    """
    if progress < 0.5:
        scale = abs(1.0 - progress * 2.0)
    else:
        scale = abs((progress - 0.5) * 2.0)
    return scale or FLIP_MIN_SCALE
