"""Region export (CVT): output sizing, strip layout and JPEG reply headers."""

from __future__ import annotations

import math
from typing import List, Tuple

DEFAULT_STRIP_HEIGHT = 128

# Aspect ratio differences below this tolerance come from rounding in
# resolution levels and are left alone.
_ASPECT_TOLERANCE = 0.005


def _round(value: float) -> int:
    """Round half away from zero, as the C library does."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def output_size(
    image_width: int,
    image_height: int,
    view_width: int,
    view_height: int,
    request_width: int,
    request_height: int,
    allow_upscaling: bool = True,
    maintain_aspect: bool = True,
) -> Tuple[int, int]:
    """Final ``(width, height)`` of a region scaled to the requested size.

    ``image_width`` and ``image_height`` are the size of the chosen
    resolution level; the view is the region cut from it. Without
    upscaling the request is limited to the resolution's size. When the
    aspect ratio is maintained the result fits within the requested size.
    """
    width, height = request_width, request_height

    if not allow_upscaling:
        width = min(width, image_width)
        height = min(height, image_height)

    if maintain_aspect:
        ratio = (width / view_width) / (height / view_height)
        if ratio < 1.0 - _ASPECT_TOLERANCE:
            height = _round((width / view_width) * view_height)
        elif ratio > 1.0 + _ASPECT_TOLERANCE:
            width = _round((height / view_height) * view_width)

    return width, height


def strip_heights(height: int, strip_height: int = DEFAULT_STRIP_HEIGHT) -> List[int]:
    """Heights of the strips an image of ``height`` rows is compressed in.

    Every strip is ``strip_height`` rows except possibly the last one.
    """
    if strip_height <= 0:
        raise ValueError("strip height must be positive")
    full, remainder = divmod(height, strip_height)
    heights = [strip_height] * full
    if remainder:
        heights.append(remainder)
    return heights


def output_channels(channels: int) -> int:
    """Number of channels sent: alpha and extra bands are flattened away."""
    if channels == 2:
        return 1
    if channels > 3:
        return 3
    return channels


def image_basename(path: str) -> str:
    """File name of ``path`` without its directory and its suffix."""
    start = path.rfind("/") + 1
    dot = path.rfind(".")
    if dot < start:
        return path[start:]
    return path[start:dot]


def cvt_headers(
    version: str, cache_control: str, last_modified: str, image_path: str
) -> str:
    """HTTP headers preceding the JPEG data of a region reply."""
    return (
        f"Server: iipsrv/{version}\r\n"
        "X-Powered-By: IIPImage\r\n"
        f"{cache_control}\r\n"
        f"Last-Modified: {last_modified}\r\n"
        "Content-Type: image/jpeg\r\n"
        f'Content-Disposition: inline;filename="{image_basename(image_path)}.jpg"\r\n'
        "\r\n"
    )