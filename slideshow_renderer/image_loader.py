"""
Image Loader - Imperative Shell

Handles file I/O and decoding for slide images.
Decodes with Pillow and delegates pixel conversion to render_video_core.

This is the "shell" that supplies the compositor with decoded images; the
compositor itself never touches the filesystem.
"""

import base64
import binascii
import io
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np  # type: ignore
from PIL import Image, UnidentifiedImageError  # type: ignore

from slide_types import ImageLoadError
from render_video_core import pil_to_rgb_array


# ============================================================================
# Source Decoding (Imperative Shell)
# ============================================================================

def decode_data_uri(source: str) -> bytes:
    """Extract the payload of a base64 `data:` URI

    Raises:
        ImageLoadError: If the URI is malformed or not base64
    """
    header, separator, payload = source.partition(',')
    if not separator:
        raise ImageLoadError(source, "malformed data URI")
    if not header.endswith(';base64'):
        raise ImageLoadError(source, "only base64 data URIs are supported")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(source, f"invalid base64 payload: {e}")


def open_image_source(source: str) -> Image.Image:
    """Open a local path or data URI as a PIL Image

    Imperative shell: performs file I/O.

    Raises:
        ImageLoadError: If the source is missing or cannot be decoded
    """
    if source.startswith('data:'):
        stream = io.BytesIO(decode_data_uri(source))
    else:
        path = Path(source)
        if not path.is_file():
            raise ImageLoadError(source, "file not found")
        stream = path

    try:
        image = Image.open(stream)
        image.load()
    except UnidentifiedImageError:
        raise ImageLoadError(source, "not a recognized image format")
    except Image.DecompressionBombError as e:
        raise ImageLoadError(source, f"image too large: {e}")
    except OSError as e:
        raise ImageLoadError(source, str(e))

    return image


def load_image(source: str) -> np.ndarray:
    """Load one slide image as an RGB uint8 array

    Args:
        source: Local file path or `data:image/...;base64,` URI

    Returns:
        Array (height, width, 3) uint8, transparency composited onto black

    Raises:
        ImageLoadError: With the offending source attached
    """
    image = open_image_source(source)
    if image.width <= 0 or image.height <= 0:
        raise ImageLoadError(source, "image has no pixels")
    return pil_to_rgb_array(image)


# ============================================================================
# Batch Loading
# ============================================================================

def load_slide_images(
    sources: Sequence[str],
    on_loaded: Optional[Callable[[int, int], None]] = None,
    max_workers: int = 4
) -> List[np.ndarray]:
    """Load all slide images, concurrently, preserving order

    Loading either completes for every source or fails as a whole: on
    failure the error for the earliest failing slide is raised and no
    partial list is returned.

    Side effects:
    - Reads image files
    - Spawns a thread pool for decoding

    Args:
        sources: Image sources in slide order
        on_loaded: Called as (loaded_count, total) after each image decodes
        max_workers: Thread pool size (1 loads sequentially)

    Returns:
        Decoded images in the same order as sources

    Raises:
        ImageLoadError: If any source fails
    """
    total = len(sources)
    images: List[Optional[np.ndarray]] = [None] * total
    failures = {}

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {pool.submit(load_image, source): index for index, source in enumerate(sources)}
        loaded = 0
        for future in as_completed(futures):
            index = futures[future]
            if future.cancelled():
                continue
            try:
                images[index] = future.result()
            except ImageLoadError as e:
                failures[index] = e
                for pending in futures:
                    pending.cancel()
                continue
            loaded += 1
            if on_loaded is not None:
                on_loaded(loaded, total)

    if failures:
        raise failures[min(failures)]

    return images
