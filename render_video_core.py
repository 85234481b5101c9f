"""
Video Rendering Core - Functional Core

Pure functions for image conversion, canvas operations, and layer compositing.
No side effects: no file I/O, no logging.

Canvases are float32 RGB arrays (height, width, 3) holding values in
[0, 255]. Layers are composited with source-over alpha blending, so a
sequence of translucent draws accumulates the way it does on a 2D canvas.

Architecture: Functional core (this file) called by the effect renderer and
the imperative shell in slideshow_renderer/shell.py
"""

from typing import Tuple, Optional
import numpy as np  # type: ignore
from PIL import Image  # type: ignore
import cv2  # type: ignore


Rect = Tuple[float, float, float, float]


# ============================================================================
# Image Format Conversions
# ============================================================================

def pil_to_rgb_array(pil_image: Image.Image) -> np.ndarray:
    """
    Convert PIL Image to an RGB uint8 array with proper alpha compositing.

    Pure function - handles RGBA by compositing onto black background.

    Args:
        pil_image: PIL Image in any mode (RGBA, RGB, P, L, etc.)

    Returns:
        NumPy array (height, width, 3) uint8 in RGB order

    Examples:
        >>> img = Image.new('RGBA', (100, 50), (255, 0, 0, 128))
        >>> pil_to_rgb_array(img).shape
        (50, 100, 3)
    """
    if pil_image.mode in ('RGBA', 'LA', 'P', 'PA'):
        pil_image = pil_image.convert('RGBA')
        background = Image.new('RGBA', pil_image.size, (0, 0, 0, 255))
        pil_image = Image.alpha_composite(background, pil_image)

    return np.asarray(pil_image.convert('RGB'), dtype=np.uint8).copy()


def rgb_array_to_pil(array: np.ndarray) -> Image.Image:
    """
    Convert an RGB array (uint8 or float canvas) to a PIL Image.

    Args:
        array: (height, width, 3) array

    Returns:
        PIL Image in RGB mode
    """
    if array.dtype != np.uint8:
        array = canvas_to_rgb(array)
    return Image.fromarray(array)


def rgb_to_bgr(array: np.ndarray) -> np.ndarray:
    """Swap channel order for OpenCV display/IO"""
    return cv2.cvtColor(array, cv2.COLOR_RGB2BGR)


# ============================================================================
# Canvas Operations
# ============================================================================

def create_canvas(
    width: int,
    height: int,
    fill_color: Optional[Tuple[int, int, int]] = None
) -> np.ndarray:
    """
    Create a float32 RGB canvas for compositing.

    Pure function - allocates new array.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        fill_color: Initial fill color (R, G, B). None for black.

    Returns:
        NumPy array (height, width, 3) float32

    Examples:
        >>> canvas = create_canvas(100, 50, fill_color=(255, 0, 0))
        >>> canvas.shape
        (50, 100, 3)
    """
    canvas = np.zeros((height, width, 3), dtype=np.float32)
    if fill_color:
        canvas[:] = fill_color
    return canvas


def fill_canvas(canvas: np.ndarray, color: Tuple[int, int, int]) -> None:
    """Overwrite every pixel with color (modifies canvas in-place)"""
    canvas[:] = np.asarray(color, dtype=np.float32)


def canvas_to_rgb(canvas: np.ndarray) -> np.ndarray:
    """
    Quantize a float canvas to a new uint8 RGB array.

    Rounds to nearest and clips to [0, 255].
    """
    return np.clip(np.rint(canvas), 0, 255).astype(np.uint8)


# ============================================================================
# Coverage Masks
# ============================================================================

def axis_coverage(start: float, end: float, size: int) -> np.ndarray:
    """
    Fraction of each pixel cell [i, i+1) covered by the span [start, end).

    Pure function - gives anti-aliased edges for fractional spans.

    Examples:
        >>> axis_coverage(0.5, 2.0, 3)
        array([0.5, 1. , 0. ], dtype=float32)
    """
    cells = np.arange(size, dtype=np.float64)
    covered = np.minimum(cells + 1.0, end) - np.maximum(cells, start)
    return np.clip(covered, 0.0, 1.0).astype(np.float32)


def rect_coverage(rect: Rect, width: int, height: int) -> np.ndarray:
    """
    Coverage mask of an axis-aligned rectangle.

    Args:
        rect: (x0, y0, x1, y1) corners in canvas pixels
        width, height: Canvas size

    Returns:
        float32 array (height, width) in [0, 1]
    """
    x0, y0, x1, y1 = rect
    return np.outer(axis_coverage(y0, y1, height), axis_coverage(x0, x1, width))


# ============================================================================
# Placement Transforms
# ============================================================================

def transformed_rect(matrix: np.ndarray, width: float, height: float) -> Rect:
    """
    Canvas-space bounds of a [0, width] x [0, height] source under matrix.

    Args:
        matrix: Axis-aligned 3x3 transform (source → canvas)
        width, height: Source extent

    Returns:
        (x0, y0, x1, y1) with x0 <= x1 and y0 <= y1
    """
    corners = matrix @ np.array([[0.0, width], [0.0, height], [1.0, 1.0]])
    return (float(corners[0].min()), float(corners[1].min()),
            float(corners[0].max()), float(corners[1].max()))


def is_degenerate(matrix: np.ndarray, eps: float = 1e-9) -> bool:
    """True if the transform collapses the source to (near) zero area"""
    return abs(matrix[0, 0] * matrix[1, 1] - matrix[0, 1] * matrix[1, 0]) < eps


def to_pixel_center_affine(matrix: np.ndarray) -> np.ndarray:
    """
    Convert a continuous-space transform to OpenCV's pixel-index convention.

    Continuous coordinates put pixel centres at +0.5 while cv2.warpAffine
    maps integer indices.

    Returns:
        2x3 float64 matrix for cv2.warpAffine
    """
    shift_in = np.array([[1.0, 0.0, 0.5], [0.0, 1.0, 0.5], [0.0, 0.0, 1.0]])
    shift_out = np.array([[1.0, 0.0, -0.5], [0.0, 1.0, -0.5], [0.0, 0.0, 1.0]])
    return (shift_out @ matrix @ shift_in)[:2]


# ============================================================================
# Layer Operations
# ============================================================================

def warp_layer(
    image: np.ndarray,
    matrix: np.ndarray,
    width: int,
    height: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Resample an image into canvas space.

    Pure function - allocates the layer and its coverage mask.

    Args:
        image: uint8 array (h, w, 3) RGB or (h, w, 4) RGBA
        matrix: Axis-aligned 3x3 transform from image pixels to canvas pixels
        width, height: Canvas size

    Returns:
        (premultiplied_rgb, coverage) where premultiplied_rgb is float32
        (height, width, 3) and coverage is float32 (height, width)

    Notes:
        - Coverage comes from the exact transformed rectangle, so image
          edges are anti-aliased without sampling the border colour
        - Alpha of RGBA images multiplies the coverage
    """
    image_h, image_w = image.shape[:2]
    coverage = rect_coverage(transformed_rect(matrix, image_w, image_h), width, height)

    warped = cv2.warpAffine(
        image,
        to_pixel_center_affine(matrix),
        (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_REPLICATE
    ).astype(np.float32)

    if warped.ndim == 3 and warped.shape[2] == 4:
        coverage = coverage * (warped[:, :, 3] / 255.0)
        warped = warped[:, :, :3]
    elif warped.ndim == 2:
        warped = np.repeat(warped[:, :, np.newaxis], 3, axis=2)

    return warped * coverage[:, :, np.newaxis], coverage


def blur_layer(
    premultiplied: np.ndarray,
    coverage: np.ndarray,
    radius: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gaussian-blur a premultiplied layer together with its coverage.

    Args:
        premultiplied: float32 (h, w, 3) layer from warp_layer()
        coverage: float32 (h, w) mask from warp_layer()
        radius: Gaussian standard deviation in pixels (<= 0 for no blur)

    Returns:
        (premultiplied, coverage), new arrays when blurred
    """
    if radius <= 0:
        return premultiplied, coverage

    blurred = cv2.GaussianBlur(premultiplied, (0, 0), sigmaX=radius, sigmaY=radius)
    blurred_coverage = cv2.GaussianBlur(coverage, (0, 0), sigmaX=radius, sigmaY=radius)
    return blurred, blurred_coverage


def composite_layer(
    canvas: np.ndarray,
    premultiplied: np.ndarray,
    coverage: np.ndarray,
    opacity: float = 1.0
) -> None:
    """
    Composite a premultiplied layer onto canvas (source-over).

    Modifies canvas in-place (functional core with mutable optimization).

    Alpha formula: canvas * (1 - coverage * opacity) + premultiplied * opacity

    Examples:
        >>> canvas = create_canvas(10, 10)
        >>> layer = np.full((10, 10, 3), 255.0, dtype=np.float32)
        >>> composite_layer(canvas, layer, np.ones((10, 10), np.float32), 0.5)
        >>> canvas[0, 0, 0]
        127.5
    """
    alpha = coverage * opacity
    canvas *= (1.0 - alpha)[:, :, np.newaxis]
    canvas += premultiplied * opacity


def draw_image(
    canvas: np.ndarray,
    image: Optional[np.ndarray],
    matrix: np.ndarray,
    opacity: float = 1.0,
    clip_rect: Optional[Rect] = None,
    blur_radius: float = 0.0
) -> bool:
    """
    Draw an image onto canvas under a placement transform.

    Modifies canvas in-place (functional core with mutable optimization).

    Args:
        canvas: float32 RGB canvas (modified in-place)
        image: uint8 pixel array, or None to skip drawing
        matrix: Axis-aligned 3x3 transform from image pixels to canvas pixels
        opacity: Global alpha (0.0 to 1.0)
        clip_rect: Optional (x, y, width, height) region the draw is confined to
        blur_radius: Gaussian blur sigma applied to the drawn layer

    Returns:
        True if anything was drawn

    Notes:
        - Absent images, zero opacity and zero-area transforms draw nothing
        - Blurring happens before clipping, so a clipped edge stays sharp
    """
    if image is None or opacity <= 0 or is_degenerate(matrix):
        return False

    height, width = canvas.shape[:2]
    premultiplied, coverage = warp_layer(image, matrix, width, height)

    premultiplied, coverage = blur_layer(premultiplied, coverage, blur_radius)

    if clip_rect is not None:
        x, y, clip_w, clip_h = clip_rect
        clip = rect_coverage((x, y, x + clip_w, y + clip_h), width, height)
        coverage = coverage * clip
        premultiplied = premultiplied * clip[:, :, np.newaxis]

    if not coverage.any():
        return False

    composite_layer(canvas, premultiplied, coverage, min(opacity, 1.0))
    return True
